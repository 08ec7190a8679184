"""Filesystem helpers for atomic writes and exclusive locking."""

import fcntl
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write(path: str | Path, content: bytes) -> None:
    """Write file atomically using temp file + rename.

    Readers never see partial writes: the file is written to a temporary
    location in the same directory, fsynced, then renamed into place.

    Args:
        path: Target file path
        content: Bytes to write

    Raises:
        OSError: If write or rename fails
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())

            # Atomic on POSIX
            tmp_path.replace(path)
            logger.debug(f"Atomically wrote {len(content)} bytes to {path}")

        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise


def safe_read(path: str | Path) -> bytes | None:
    """Read file safely, returning None if not found.

    Args:
        path: File path to read

    Returns:
        File contents as bytes or None if not found
    """
    path = Path(path)
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


@contextmanager
def exclusive_lock(lock_path: str | Path) -> Iterator[None]:
    """Hold an exclusive fcntl lock on ``lock_path`` for the block.

    Serializes the read-compare-write of a shared file across processes
    on the same host.
    """
    lock_path = Path(lock_path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.touch()

    with open(lock_path, "r+") as lock:
        fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock.fileno(), fcntl.LOCK_UN)
