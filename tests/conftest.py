"""Test configuration and shared fixtures for atomicblob tests."""

import logging

import pytest

from atomicblob.context import Context
from atomicblob.services.group import Group
from atomicblob.services.storage.local import LocalFileBucket
from atomicblob.services.storage.memory import InMemoryBucket


@pytest.fixture
def ctx():
    """A background context with no deadline."""
    return Context.background()


@pytest.fixture
def bucket():
    """Provide a clean in-memory bucket for each test."""
    return InMemoryBucket()


@pytest.fixture
def local_bucket(tmp_path):
    """Provide a bucket rooted in a temporary directory."""
    return LocalFileBucket(tmp_path / "bucket")


@pytest.fixture
def group(bucket):
    """Provide a Group over the in-memory bucket."""
    return Group(bucket, "test")


@pytest.fixture(autouse=True)
def _debug_logging(caplog):
    """Capture atomicblob debug logs so failures show retry history."""
    caplog.set_level(logging.DEBUG, logger="atomicblob")
