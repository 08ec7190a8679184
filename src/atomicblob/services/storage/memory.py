"""In-memory implementation of Bucket for testing.

This provides a thread-safe, in-memory implementation that mimics
the CAS semantics of cloud storage providers.
"""

import io
import threading
from collections.abc import Callable
from typing import BinaryIO

from ...errors import BlobNotFoundError, MetadataLimitError, StoreError
from .bucket import DEFAULT_MAX_ATTRIBUTES, BlobSink, VersionToken


class InMemoryBucket:
    """In-memory bucket for testing.

    Besides the Bucket protocol, tests can install hooks that run just
    before a store call (``before_update_metadata``, ``before_open_reader``)
    to inject a concurrent writer at an exact point, and can make blob
    uploads or deletes fail via ``fail_uploads`` / ``fail_deletes``.
    """

    def __init__(self, max_attributes: int = DEFAULT_MAX_ATTRIBUTES):
        """Initialize empty store with thread safety."""
        self.max_attributes = max_attributes
        self._blobs: dict[str, bytes] = {}
        self._attrs: dict[str, str] = {}
        self._revision: int | None = None
        self._lock = threading.RLock()

        self.fail_uploads = False
        self.fail_deletes = False
        self.before_update_metadata: Callable[[], None] | None = None
        self.before_open_reader: Callable[[str], None] | None = None
        self.metadata_updates = 0
        self.stale_updates = 0

    def open_reader(self, key: str) -> BinaryIO:
        hook = self.before_open_reader
        if hook is not None:
            self.before_open_reader = None
            hook(key)
        with self._lock:
            if key not in self._blobs:
                raise BlobNotFoundError(key)
            return io.BytesIO(self._blobs[key])

    def open_writer(self, key: str) -> BlobSink:
        return BlobSink(key, self._upload)

    def _upload(self, key: str, data: bytes) -> None:
        if self.fail_uploads:
            raise StoreError(f"Injected upload failure for {key}")
        with self._lock:
            self._blobs[key] = data

    def delete(self, key: str) -> bool:
        if self.fail_deletes:
            raise StoreError(f"Injected delete failure for {key}")
        with self._lock:
            return self._blobs.pop(key, None) is not None

    def get_metadata(self) -> tuple[dict[str, str], VersionToken]:
        with self._lock:
            return dict(self._attrs), VersionToken(self._revision)

    def update_metadata(self, attrs: dict[str, str], version: VersionToken) -> bool:
        """Update if version matches (CAS)."""
        hook = self.before_update_metadata
        if hook is not None:
            # One-shot so the hook can itself commit through this bucket
            self.before_update_metadata = None
            hook()
        if len(attrs) > self.max_attributes:
            raise MetadataLimitError(
                f"{len(attrs)} attributes exceeds bucket limit of {self.max_attributes}"
            )
        with self._lock:
            if self._revision != version.value:
                self.stale_updates += 1
                return False
            self._attrs = dict(attrs)
            self._revision = (self._revision or 0) + 1
            self.metadata_updates += 1
            return True

    def list_keys(self, prefix: str = "") -> list[str]:
        """List keys with prefix."""
        with self._lock:
            return [key for key in self._blobs if key.startswith(prefix)]

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._blobs

    def clear(self) -> None:
        """Clear all data (useful for tests)."""
        with self._lock:
            self._blobs.clear()
            self._attrs.clear()
            self._revision = None
