"""Retrying read-modify-write over a single group entry.

Operation lifecycle::

    READ_CURRENT -> APPLY_TRANSFORM -> WRITE_NEW -> COMMITTED
                                           |
                                           +--(conflict)--> READ_CURRENT

Any error other than a commit conflict ends in ABORTED and propagates.
Retries are unbounded with no backoff; the context is checked at the top
of every state so callers can bound the loop with a deadline.
"""

import logging
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

from ..context import Context
from ..core.naming import split_blob_key
from ..errors import BlobNotFoundError, NotInGroupError, TransformError, UpdateConflictError

if TYPE_CHECKING:
    from .group import Group

logger = logging.getLogger(__name__)


class OperateState(str, Enum):
    """States of an atomic read-modify-write."""

    READ_CURRENT = "read_current"
    APPLY_TRANSFORM = "apply_transform"
    WRITE_NEW = "write_new"

    # Terminal states
    COMMITTED = "committed"
    ABORTED = "aborted"


class Operation:
    """One ``Group.operate`` call, run as an explicit state machine."""

    def __init__(self, group: "Group", ctx: Context, name: str, transform: Callable[[bytes], bytes]):
        self.group = group
        self.ctx = ctx
        self.name = name
        self.transform = transform

        self.state = OperateState.READ_CURRENT
        self.attempts = 0
        self._content = b""
        self._key = ""
        self._output = b""

    def run(self) -> bytes:
        """Drive the operation to COMMITTED, returning the committed content."""
        try:
            while self.state is not OperateState.COMMITTED:
                self.ctx.check()
                if self.state is OperateState.READ_CURRENT:
                    self._read_current()
                    self.state = OperateState.APPLY_TRANSFORM
                elif self.state is OperateState.APPLY_TRANSFORM:
                    self._apply_transform()
                    self.state = OperateState.WRITE_NEW
                elif self.state is OperateState.WRITE_NEW:
                    self.state = self._write_new()
        except BaseException:
            self.state = OperateState.ABORTED
            raise
        return self._output

    def _read_current(self) -> None:
        self.attempts += 1
        self._content = b""
        try:
            reader = self.group.new_reader(self.ctx, self.name)
        except NotInGroupError:
            self._key = ""
            return
        except BlobNotFoundError as e:
            # Registered blob is gone; compare against the suffix still on record
            logger.debug(f"No current value for '{self.name}': {e}")
            self._key = split_blob_key(e.key)[1]
            return

        with reader:
            self._key = reader.key
            try:
                self._content = reader.read()
            except BlobNotFoundError as e:
                logger.debug(f"Blob for '{self.name}' vanished during read: {e}")

    def _apply_transform(self) -> None:
        try:
            output = self.transform(self._content)
        except Exception as e:
            raise TransformError(self.name, e) from e
        if not isinstance(output, (bytes, bytearray, memoryview)):
            raise TransformError(
                self.name, TypeError(f"transform must return bytes, got {type(output).__name__}")
            )
        self._output = bytes(output)

    def _write_new(self) -> OperateState:
        writer = self.group.new_writer(self.ctx, self._key, self.name)
        try:
            writer.write(self._output)
        except Exception:
            writer.abort()
            raise
        try:
            writer.close()
        except UpdateConflictError:
            logger.debug(
                f"Conflict on '{self.name}' in group '{self.group.name}' "
                f"(attempt {self.attempts}), re-reading"
            )
            return OperateState.READ_CURRENT
        return OperateState.COMMITTED
