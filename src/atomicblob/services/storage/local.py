"""Local filesystem bucket for development and testing."""

import json
import logging
from pathlib import Path
from typing import BinaryIO

from ...errors import BlobNotFoundError, MetadataLimitError, StoreError
from ..storage_utils import atomic_write, exclusive_lock, safe_read
from .bucket import DEFAULT_MAX_ATTRIBUTES, BlobSink, VersionToken

logger = logging.getLogger(__name__)

ATTRS_FILE = ".bucket-attrs.json"
LOCK_FILE = ".bucket-attrs.lock"


class LocalFileBucket:
    """Local filesystem bucket implementation.

    Blobs are stored as files under ``<base_path>/blobs``. The attribute
    record is a JSON document carrying an integer revision, which is the
    version token; updates compare and replace it under an exclusive
    file lock, so several processes on one host can share a bucket.

    Layout:
        <base_path>/blobs/<name>/<suffix>
        <base_path>/.bucket-attrs.json   {"revision": 3, "attrs": {...}}
        <base_path>/.bucket-attrs.lock
    """

    def __init__(self, base_path: str | Path, max_attributes: int = DEFAULT_MAX_ATTRIBUTES):
        """Initialize local bucket.

        Args:
            base_path: Root directory for the bucket (created if missing)
            max_attributes: Attribute count ceiling for the record
        """
        self.base_path = Path(base_path)
        self.blob_root = self.base_path / "blobs"
        self.max_attributes = max_attributes
        self.blob_root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initialized local bucket at: {self.base_path}")

    def _get_path(self, key: str) -> Path:
        """Convert key to filesystem path."""
        # Ensure path is safe (no .. or absolute paths)
        if not key or ".." in key.split("/") or Path(key).is_absolute():
            raise ValueError(f"Invalid key: {key}")
        return self.blob_root / key

    def open_reader(self, key: str) -> BinaryIO:
        path = self._get_path(key)
        try:
            return open(path, "rb")
        except FileNotFoundError:
            raise BlobNotFoundError(key)
        except OSError as e:
            raise StoreError(f"Failed to open '{key}': {e}") from e

    def open_writer(self, key: str) -> BlobSink:
        return BlobSink(key, self._upload)

    def _upload(self, key: str, data: bytes) -> None:
        try:
            atomic_write(self._get_path(key), data)
            logger.debug(f"Saved {len(data)} bytes to {key}")
        except OSError as e:
            raise StoreError(f"Failed to save key '{key}': {e}") from e

    def delete(self, key: str) -> bool:
        path = self._get_path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StoreError(f"Failed to delete key '{key}': {e}") from e
        # Empty name directories are kept; a concurrent upload may be writing into them
        logger.debug(f"Deleted key: {key}")
        return True

    def _read_record(self) -> tuple[dict[str, str], int | None]:
        raw = safe_read(self.base_path / ATTRS_FILE)
        if raw is None:
            return {}, None
        try:
            doc = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise StoreError(f"Corrupt bucket attribute file in {self.base_path}: {e}") from e
        return dict(doc.get("attrs") or {}), doc.get("revision")

    def get_metadata(self) -> tuple[dict[str, str], VersionToken]:
        try:
            attrs, revision = self._read_record()
        except OSError as e:
            raise StoreError(f"Failed to read bucket attributes: {e}") from e
        return attrs, VersionToken(revision)

    def update_metadata(self, attrs: dict[str, str], version: VersionToken) -> bool:
        if len(attrs) > self.max_attributes:
            raise MetadataLimitError(
                f"{len(attrs)} attributes exceeds bucket limit of {self.max_attributes}"
            )
        try:
            with exclusive_lock(self.base_path / LOCK_FILE):
                _, revision = self._read_record()
                if revision != version.value:
                    logger.debug(f"CAS conflict on bucket attributes (revision: {revision})")
                    return False
                doc = {"revision": (revision or 0) + 1, "attrs": attrs}
                atomic_write(self.base_path / ATTRS_FILE, json.dumps(doc, indent=2).encode("utf-8"))
        except OSError as e:
            raise StoreError(f"Failed to update bucket attributes: {e}") from e
        return True

    def list_keys(self, prefix: str = "") -> list[str]:
        keys = []
        for path in self.blob_root.rglob("*"):
            if path.is_file() and not path.name.startswith("."):
                key = path.relative_to(self.blob_root).as_posix()
                if key.startswith(prefix):
                    keys.append(key)
        return sorted(keys)
