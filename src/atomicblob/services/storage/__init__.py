"""Bucket backends for atomicblob groups."""

import logging
import os

from .bucket import DEFAULT_MAX_ATTRIBUTES, Bucket, BlobSink, VersionToken
from .local import LocalFileBucket
from .memory import InMemoryBucket

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_PATH = "/tmp/atomicblob/bucket"


def get_bucket(backend: str = "auto", **kwargs) -> Bucket:
    """Factory function to get a specific bucket backend.

    Args:
        backend: One of "auto", "azure", "local", "memory"
        **kwargs: Backend-specific configuration

    Returns:
        Bucket instance

    Raises:
        ValueError: If backend is unknown

    Examples:
        >>> # Explicit Azure backend
        >>> bucket = get_bucket("azure", container="coordination")

        >>> # Explicit local backend
        >>> bucket = get_bucket("local", base_path="/tmp/bucket")

        >>> # Auto-detect
        >>> bucket = get_bucket("auto")
    """
    if backend == "auto":
        if os.environ.get("AZURE_STORAGE_CONNECTION_STRING"):
            logger.info("Detected Azure environment")
            backend = "azure"
        else:
            logger.info("No cloud environment detected, using local storage")
            backend = "local"

    if backend == "azure":
        from .azure import AzureBucket

        kwargs.pop("base_path", None)
        return AzureBucket(**kwargs)
    elif backend == "local":
        kwargs.pop("container", None)
        kwargs.pop("connection_string", None)
        kwargs.setdefault("base_path", DEFAULT_LOCAL_PATH)
        return LocalFileBucket(**kwargs)
    elif backend == "memory":
        return InMemoryBucket(max_attributes=kwargs.get("max_attributes", DEFAULT_MAX_ATTRIBUTES))
    else:
        raise ValueError(f"Unknown backend type: {backend}")


__all__ = [
    "Bucket",
    "BlobSink",
    "VersionToken",
    "InMemoryBucket",
    "LocalFileBucket",
    "get_bucket",
]
