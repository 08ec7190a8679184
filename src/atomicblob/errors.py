"""Error types for atomicblob."""


class AtomicBlobError(Exception):
    """Base exception for atomicblob errors."""
    pass


class NotInGroupError(AtomicBlobError):
    """The name has no current mapping in the group's metadata record."""

    def __init__(self, group: str, name: str):
        super().__init__(f"'{name}' is not in group '{group}'")
        self.group = group
        self.name = name


class BlobNotFoundError(AtomicBlobError):
    """A blob is registered (or expected) but absent from the store.

    Distinct from NotInGroupError: this usually means the blob was removed
    by a concurrent commit between metadata lookup and download.
    """

    def __init__(self, key: str):
        super().__init__(f"Blob not found: {key}")
        self.key = key


class UpdateConflictError(AtomicBlobError):
    """Optimistic check lost; another writer committed first."""
    pass


class StoreError(AtomicBlobError):
    """I/O, auth, or network failure from the backing store."""
    pass


class MetadataLimitError(StoreError):
    """The bucket cannot hold another metadata attribute."""
    pass


class MetadataDecodeError(AtomicBlobError):
    """A stored metadata record could not be decoded."""
    pass


class TransformError(AtomicBlobError):
    """Caller-supplied transform failed; nothing was written."""

    def __init__(self, name: str, cause: BaseException):
        super().__init__(f"Transform for '{name}' failed: {cause}")
        self.name = name


class OperationCancelledError(AtomicBlobError):
    """Base for context cancellation and deadline expiry."""
    pass


class ContextCancelledError(OperationCancelledError):
    """The operation's context was cancelled."""
    pass


class DeadlineExceededError(OperationCancelledError):
    """The operation's context deadline passed."""
    pass


class ConfigError(AtomicBlobError):
    """Configuration error."""
    pass
