"""Bucket protocol for the backing object store.

This module provides a cloud-agnostic interface over the two primitives
the atomic group protocol needs from an object store: write-once blob
objects, and one bucket-level attribute record that can be updated
conditionally (Compare-And-Swap on an opaque version token).
"""

import io
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, BinaryIO, Protocol, runtime_checkable

# Matches the attribute ceiling of common object stores' bucket metadata.
DEFAULT_MAX_ATTRIBUTES = 10


@dataclass(frozen=True)
class VersionToken:
    """Opaque version identifier for the bucket attribute record.

    The actual value depends on the storage backend:
    - Azure: ETag string of the attribute blob
    - Local: revision counter
    - Memory: revision counter

    ``VersionToken(None)`` means the record has never been written.
    """

    value: Any

    def __str__(self) -> str:
        return str(self.value)


class BlobSink:
    """Write handle for one blob.

    Data is buffered locally and uploaded on ``close()``. Writing never
    touches the store, so upload failures only surface from ``close()``.
    """

    def __init__(self, key: str, upload: Callable[[str, bytes], None]):
        self.key = key
        self._upload = upload
        self._buffer = io.BytesIO()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError(f"Write to closed sink for {self.key}")
        return self._buffer.write(data)

    def close(self) -> None:
        """Upload buffered data. Idempotent."""
        if self._closed:
            return
        self._closed = True
        data = self._buffer.getvalue()
        self._buffer.close()
        self._upload(self.key, data)

    def discard(self) -> None:
        """Drop buffered data without uploading."""
        if not self._closed:
            self._closed = True
            self._buffer.close()


@runtime_checkable
class Bucket(Protocol):
    """Protocol for backing object stores.

    Implementations include:
    - InMemoryBucket: thread-safe in-process store (tests)
    - LocalFileBucket: local filesystem (development)
    - AzureBucket: Azure Blob Storage container
    """

    max_attributes: int

    def open_reader(self, key: str) -> BinaryIO:
        """Open a blob for reading.

        Raises:
            BlobNotFoundError: If the blob doesn't exist
            StoreError: On backend failure
        """
        ...

    def open_writer(self, key: str) -> BlobSink:
        """Open a sink for a new blob. Never fails; see BlobSink.close()."""
        ...

    def delete(self, key: str) -> bool:
        """Delete a blob.

        Returns:
            True if deleted, False if it didn't exist.

        Raises:
            StoreError: On backend failure
        """
        ...

    def get_metadata(self) -> tuple[dict[str, str], VersionToken]:
        """Fetch the bucket attribute record and its version.

        Returns:
            Tuple of (attributes, version token). Attributes are empty and
            the token wraps None if the record was never written.
        """
        ...

    def update_metadata(self, attrs: dict[str, str], version: VersionToken) -> bool:
        """Replace the attribute record if version matches (Compare-And-Swap).

        Returns:
            True if update succeeded, False if version mismatch (retry needed).

        Raises:
            MetadataLimitError: If attrs has more than max_attributes entries
            StoreError: On backend failure

        Note:
            Returns False instead of raising because conflicts are expected
            in concurrent scenarios and should trigger retries.
        """
        ...

    def list_keys(self, prefix: str = "") -> list[str]:
        """List blob keys with given prefix (diagnostics only)."""
        ...
