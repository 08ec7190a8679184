"""Atomic groups of named blobs.

A Group is a coordination domain inside one bucket. It owns a single
metadata record, stored under a namespaced bucket attribute, that maps
each entry name to the suffix of its live blob. Entries in the same group
contend with each other for updates; the number of groups per bucket is
bounded by the bucket's attribute limit (10 at most, fewer if the bucket
carries other attributes).

Updates are lock-free. Two optimistic checks guard every save: the
store's conditional update on the whole attribute record, and the
record's own serial counter.
"""

import json
import logging
from collections.abc import Callable

from ..context import Context
from ..core.naming import blob_key, meta_key, random_suffix, validate_entry_name, validate_group_name
from ..errors import NotInGroupError, UpdateConflictError
from .handles import Reader, Writer
from .record import MetadataRecord
from .storage.bucket import Bucket, VersionToken

logger = logging.getLogger(__name__)


class Group:
    """Collection of bucket objects that can be modified atomically.

    The metadata record is never cached between calls: every operation
    re-fetches it together with its version token.
    """

    def __init__(self, bucket: Bucket, name: str):
        """Initialize group.

        Args:
            bucket: Backing store (Azure, local, in-memory)
            name: Group name, namespacing the record's attribute key
        """
        self.bucket = bucket
        self.name = validate_group_name(name)
        self.meta_key = meta_key(name)

    def __repr__(self) -> str:
        return f"Group({self.name!r})"

    def _fetch(self, ctx: Context) -> tuple[MetadataRecord, dict[str, str], VersionToken]:
        ctx.check()
        attrs, version = self.bucket.get_metadata()
        encoded = attrs.get(self.meta_key)
        if encoded is None:
            return MetadataRecord(), attrs, version
        return MetadataRecord.decode(encoded), attrs, version

    def info(self, ctx: Context) -> MetadataRecord:
        """Fetch the group's current metadata record.

        Returns a fresh default record (serial 0, no locations) when the
        group has never been saved. Nothing is persisted on a miss.
        """
        record, _, _ = self._fetch(ctx)
        return record

    def save(self, ctx: Context, record: MetadataRecord) -> None:
        """Persist ``record`` as the direct successor of the stored record.

        Increments ``record.serial``, then requires the stored serial to be
        exactly one less. A stale bucket version with the serial relation
        intact only means some other attribute changed, so the
        check-and-update step is repeated until it lands.

        Raises:
            UpdateConflictError: If another save happened since ``record`` was read
            MetadataLimitError: If the bucket has no room for this group's attribute
            StoreError: On backend failure
        """
        record.serial += 1
        encoded = record.encode()

        while True:
            stored, attrs, version = self._fetch(ctx)
            if stored.serial != record.serial - 1:
                raise UpdateConflictError(
                    f"Group '{self.name}' serial is {stored.serial}, expected {record.serial - 1}"
                )
            attrs = dict(attrs)
            attrs[self.meta_key] = encoded
            ctx.check()
            if self.bucket.update_metadata(attrs, version):
                logger.debug(f"Saved group '{self.name}' at serial {record.serial}")
                return
            # Bucket update conflict; try again.
            logger.debug(f"Bucket attributes changed while saving group '{self.name}', retrying")

    def new_reader(self, ctx: Context, name: str) -> Reader:
        """Open the current version of an entry along with its update key.

        Raises:
            NotInGroupError: If the group has no mapping for ``name``
            BlobNotFoundError: If the mapped blob is gone (concurrent delete)
        """
        validate_entry_name(name)
        record = self.info(ctx)
        suffix = record.locations.get(name)
        if suffix is None:
            raise NotInGroupError(self.name, name)
        ctx.check()
        return Reader(self.bucket.open_reader(blob_key(name, suffix)), suffix, name)

    def new_writer(self, ctx: Context, key: str, name: str) -> Writer:
        """Create a Writer and prepare it to be committed.

        The key argument should come from ``Reader.key``; if
        ``Writer.close()`` returns without error, the entry was updated from
        the data that Reader saw with no intervening writes. New entries are
        created with an empty key.
        """
        validate_entry_name(name)
        suffix = random_suffix()
        sink = self.bucket.open_writer(blob_key(name, suffix))
        return Writer(ctx, self, sink, name, suffix, key)

    def list(self, ctx: Context) -> set[str]:
        """Names of all entries in the group."""
        return set(self.info(ctx).locations)

    def get(self, ctx: Context, name: str) -> bytes:
        """Read the full current content of an entry."""
        with self.new_reader(ctx, name) as reader:
            return reader.read()

    def operate(self, ctx: Context, name: str, transform: Callable[[bytes], bytes]) -> bytes:
        """Atomically replace an entry with ``transform`` of its content.

        ``transform`` receives the current content (``b""`` when the entry
        does not exist) and its output is committed only if no other caller
        modified the entry in the meantime, as long as all callers use this
        package. On conflict the content is re-read and ``transform`` is
        called again, so it may run any number of times and must be a pure
        function of its input.

        Returns:
            The committed content

        Raises:
            TransformError: If transform raised; nothing is written
            StoreError: On backend failure
            OperationCancelledError: If ``ctx`` is cancelled or expires
        """
        from .operate import Operation

        return Operation(self, ctx, name, transform).run()

    def operate_json(self, ctx: Context, name: str, update_fn: Callable[[dict], dict]) -> dict:
        """JSON variant of ``operate``.

        Handles the common pattern of:
        1. Read current value (``{}`` when absent)
        2. Apply update function
        3. Commit, re-running on conflict
        """

        def transform(content: bytes) -> bytes:
            current = json.loads(content.decode("utf-8")) if content else {}
            return json.dumps(update_fn(current), indent=2).encode("utf-8")

        return json.loads(self.operate(ctx, name, transform).decode("utf-8"))

    def _cleanup(self, key: str, reason: str) -> None:
        """Best-effort delete; liveness is defined by the record, not by blobs."""
        try:
            self.bucket.delete(key)
            logger.debug(f"Deleted {key} ({reason})")
        except Exception as e:
            logger.warning(f"Failed to delete orphaned blob {key} ({reason}): {e}")


def new_group(bucket: Bucket, name: str) -> Group:
    """Create a Group over ``bucket``. Nothing is written until the first commit."""
    return Group(bucket, name)
