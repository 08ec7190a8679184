"""Reader and Writer handles for single group entries.

A Reader is bound to one snapshot of an entry: the live blob's content
plus the suffix it was read under (``key``). A Writer stages a new blob
under a fresh suffix and, on ``close()``, swaps the group's pointer to it
only if the entry still points at the key the writer was opened with.
"""

import logging
from typing import TYPE_CHECKING, BinaryIO

from ..context import Context
from ..core.naming import blob_key
from ..errors import UpdateConflictError
from .storage.bucket import BlobSink

if TYPE_CHECKING:
    from .group import Group

logger = logging.getLogger(__name__)


class Reader:
    """Read handle for the current version of an entry.

    ``key`` must be passed to ``Group.new_writer`` to propose a successor.
    """

    def __init__(self, stream: BinaryIO, key: str, name: str):
        self._stream = stream
        self.key = key
        self.name = name

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def close(self) -> None:
        self._stream.close()

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def __enter__(self) -> "Reader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class Writer:
    """Write handle that commits a new version of an entry on close.

    The payload is fully staged under ``{name}/{suffix}`` before the
    metadata record is touched. Closing is the only moment the writer
    touches shared state.

    Used as a context manager, a clean exit commits and an exception
    aborts without touching the metadata record.
    """

    def __init__(self, ctx: Context, group: "Group", sink: BlobSink, name: str, suffix: str, key: str):
        self.ctx = ctx
        self.group = group
        self.name = name
        self.suffix = suffix
        self.key = key
        self._sink = sink
        self._done = False

    @property
    def staged_key(self) -> str:
        return blob_key(self.name, self.suffix)

    def write(self, data: bytes) -> int:
        return self._sink.write(data)

    def abort(self) -> None:
        """Discard the staged payload without touching metadata."""
        if self._done:
            return
        self._done = True
        if self._sink.closed:
            self.group._cleanup(self.staged_key, "aborted write")
        else:
            self._sink.discard()

    def close(self) -> None:
        """Upload the staged blob and swap the entry's pointer to it.

        Raises:
            UpdateConflictError: If another writer committed a version of
                this entry after this writer's key was read
            StoreError: If the upload or a metadata round trip failed
            OperationCancelledError: If the context was cancelled
            ValueError: If the writer was already closed or aborted
        """
        if self._done:
            raise ValueError(f"Writer for '{self.name}' already closed")
        self._done = True

        try:
            self.ctx.check()
        except Exception:
            self._sink.discard()
            raise

        # On failure the partial blob is an accepted orphan
        self._sink.close()

        attempt = 0
        while True:
            attempt += 1
            try:
                self.ctx.check()
                record = self.group.info(self.ctx)
            except Exception:
                # Replacement failed; delete the new version.
                self.group._cleanup(self.staged_key, "metadata fetch failed")
                raise

            current = record.locations.get(self.name)
            if current is not None and current != self.key:
                self.group._cleanup(self.staged_key, "superseded before commit")
                raise UpdateConflictError(
                    f"'{self.name}' in group '{self.group.name}' changed since key "
                    f"'{self.key or '<new>'}' was read"
                )

            record.locations[self.name] = self.suffix
            try:
                self.group.save(self.ctx, record)
            except UpdateConflictError:
                # Serial moved; re-check whether it was this entry that changed
                logger.debug(
                    f"Serial conflict committing '{self.name}' on attempt {attempt}, re-checking"
                )
                continue
            except Exception:
                self.group._cleanup(self.staged_key, "metadata save failed")
                raise

            # Replacement successful; delete the old version.
            if self.key:
                self.group._cleanup(blob_key(self.name, self.key), "superseded")
            logger.info(
                f"Committed '{self.name}' in group '{self.group.name}' "
                f"at serial {record.serial} ({self.suffix[:8]})"
            )
            return

    def __enter__(self) -> "Writer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abort()
