"""Tests for Bucket implementations.

Tests the CAS semantics of the attribute record and the blob primitives
across the in-memory and local filesystem buckets, to ensure they behave
consistently.
"""

import json
import threading

import pytest

from atomicblob.errors import BlobNotFoundError, MetadataLimitError, StoreError
from atomicblob.services.storage import get_bucket
from atomicblob.services.storage.bucket import BlobSink, Bucket, VersionToken
from atomicblob.services.storage.local import ATTRS_FILE, LocalFileBucket
from atomicblob.services.storage.memory import InMemoryBucket


@pytest.fixture(params=["memory", "local"])
def any_bucket(request, tmp_path):
    """Run each test against every local bucket implementation."""
    if request.param == "memory":
        return InMemoryBucket()
    return LocalFileBucket(tmp_path / "bucket")


class TestBucketContract:
    """Behavior shared by all bucket implementations."""

    def test_implements_protocol(self, any_bucket):
        assert isinstance(any_bucket, Bucket)

    def test_blob_roundtrip(self, any_bucket):
        sink = any_bucket.open_writer("notes/abc")
        sink.write(b"hello ")
        sink.write(b"world")
        sink.close()

        with any_bucket.open_reader("notes/abc") as stream:
            assert stream.read() == b"hello world"

    def test_writer_is_invisible_until_closed(self, any_bucket):
        sink = any_bucket.open_writer("notes/abc")
        sink.write(b"data")

        with pytest.raises(BlobNotFoundError):
            any_bucket.open_reader("notes/abc")

        sink.close()
        assert any_bucket.open_reader("notes/abc").read() == b"data"

    def test_discarded_sink_never_uploads(self, any_bucket):
        sink = any_bucket.open_writer("notes/abc")
        sink.write(b"data")
        sink.discard()

        assert any_bucket.list_keys() == []
        with pytest.raises(ValueError):
            sink.write(b"more")

    def test_open_missing_blob(self, any_bucket):
        with pytest.raises(BlobNotFoundError) as exc_info:
            any_bucket.open_reader("missing/abc")
        assert exc_info.value.key == "missing/abc"

    def test_delete(self, any_bucket):
        sink = any_bucket.open_writer("notes/abc")
        sink.write(b"x")
        sink.close()

        assert any_bucket.delete("notes/abc")
        assert not any_bucket.delete("notes/abc")
        with pytest.raises(BlobNotFoundError):
            any_bucket.open_reader("notes/abc")

    def test_list_keys(self, any_bucket):
        for key in ["jobs/123/aa", "jobs/456/bb", "events/cc"]:
            sink = any_bucket.open_writer(key)
            sink.close()

        assert sorted(any_bucket.list_keys()) == ["events/cc", "jobs/123/aa", "jobs/456/bb"]
        assert sorted(any_bucket.list_keys("jobs/")) == ["jobs/123/aa", "jobs/456/bb"]

    def test_metadata_absent(self, any_bucket):
        attrs, version = any_bucket.get_metadata()
        assert attrs == {}
        assert version == VersionToken(None)

    def test_metadata_cas_success(self, any_bucket):
        _, version = any_bucket.get_metadata()
        assert any_bucket.update_metadata({"a": "1"}, version)

        attrs, new_version = any_bucket.get_metadata()
        assert attrs == {"a": "1"}
        assert new_version != version

    def test_metadata_cas_conflict(self, any_bucket):
        _, version1 = any_bucket.get_metadata()
        assert any_bucket.update_metadata({"a": "1"}, version1)

        # Stale version must be rejected without raising
        assert not any_bucket.update_metadata({"a": "2"}, version1)

        attrs, _ = any_bucket.get_metadata()
        assert attrs == {"a": "1"}

    def test_metadata_attribute_limit(self, any_bucket):
        _, version = any_bucket.get_metadata()
        attrs = {f"k{i}": "v" for i in range(any_bucket.max_attributes + 1)}

        with pytest.raises(MetadataLimitError):
            any_bucket.update_metadata(attrs, version)

    def test_concurrent_metadata_updates(self, any_bucket):
        """Exactly one of several writers holding the same version wins."""
        _, version = any_bucket.get_metadata()
        results = []
        barrier = threading.Barrier(5)

        def worker(worker_id: int):
            barrier.wait()
            results.append(any_bucket.update_metadata({"winner": str(worker_id)}, version))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1


class TestInMemoryBucket:
    """Fault injection hooks used by the protocol tests."""

    def test_failed_upload_surfaces_on_close(self):
        bucket = InMemoryBucket()
        bucket.fail_uploads = True

        sink = bucket.open_writer("a/b")
        sink.write(b"x")  # Never fails synchronously
        with pytest.raises(StoreError):
            sink.close()

    def test_failed_delete_raises(self):
        bucket = InMemoryBucket()
        bucket.fail_deletes = True

        with pytest.raises(StoreError):
            bucket.delete("a/b")

    def test_update_hook_runs_once(self):
        bucket = InMemoryBucket()
        calls = []
        bucket.before_update_metadata = lambda: calls.append(1)

        _, version = bucket.get_metadata()
        assert bucket.update_metadata({"a": "1"}, version)
        _, version = bucket.get_metadata()
        assert bucket.update_metadata({"a": "2"}, version)

        assert calls == [1]

    def test_clear(self):
        bucket = InMemoryBucket()
        bucket.open_writer("a/b").close()
        bucket.update_metadata({"a": "1"}, VersionToken(None))

        bucket.clear()

        assert bucket.list_keys() == []
        assert bucket.get_metadata() == ({}, VersionToken(None))


class TestLocalFileBucket:
    """Filesystem specifics."""

    def test_layout(self, tmp_path):
        bucket = LocalFileBucket(tmp_path)
        sink = bucket.open_writer("cfg/0123")
        sink.write(b"v")
        sink.close()
        bucket.update_metadata({"a": "1"}, VersionToken(None))

        assert (tmp_path / "blobs" / "cfg" / "0123").read_bytes() == b"v"
        doc = json.loads((tmp_path / ATTRS_FILE).read_text())
        assert doc == {"revision": 1, "attrs": {"a": "1"}}

    def test_shared_between_instances(self, tmp_path):
        """Two handles on one directory see each other's updates."""
        first = LocalFileBucket(tmp_path)
        second = LocalFileBucket(tmp_path)

        _, version = first.get_metadata()
        assert first.update_metadata({"a": "1"}, version)
        assert not second.update_metadata({"a": "2"}, version)
        assert second.get_metadata()[0] == {"a": "1"}

    def test_temp_files_are_not_listed(self, tmp_path):
        bucket = LocalFileBucket(tmp_path)
        bucket.open_writer("cfg/0123").close()
        (tmp_path / "blobs" / "cfg" / ".0456.abc.tmp").write_bytes(b"partial")

        assert bucket.list_keys() == ["cfg/0123"]

    def test_rejects_unsafe_keys(self, tmp_path):
        bucket = LocalFileBucket(tmp_path)

        with pytest.raises(ValueError):
            bucket.open_reader("../escape")
        with pytest.raises(ValueError):
            bucket.open_reader("/etc/passwd")

    def test_corrupt_attribute_file(self, tmp_path):
        bucket = LocalFileBucket(tmp_path)
        (tmp_path / ATTRS_FILE).write_text("{not json")

        with pytest.raises(StoreError):
            bucket.get_metadata()


class TestGetBucket:
    """Backend factory."""

    def test_memory(self):
        assert isinstance(get_bucket("memory"), InMemoryBucket)

    def test_local(self, tmp_path):
        bucket = get_bucket("local", base_path=str(tmp_path))
        assert isinstance(bucket, LocalFileBucket)
        assert bucket.base_path == tmp_path

    def test_auto_without_azure_uses_local(self, tmp_path, monkeypatch):
        monkeypatch.delenv("AZURE_STORAGE_CONNECTION_STRING", raising=False)
        assert isinstance(get_bucket("auto", base_path=str(tmp_path)), LocalFileBucket)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown backend"):
            get_bucket("ftp")


def test_blob_sink_close_is_idempotent():
    uploads = []
    sink = BlobSink("a/b", lambda key, data: uploads.append((key, data)))
    sink.write(b"x")
    sink.close()
    sink.close()

    assert uploads == [("a/b", b"x")]
