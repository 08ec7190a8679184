"""atomicblob - Atomic read-modify-write over object store blobs."""

__version__ = "0.1.0"

# Make key components available at package level
from .context import Context
from .errors import (
    AtomicBlobError,
    BlobNotFoundError,
    NotInGroupError,
    StoreError,
    TransformError,
    UpdateConflictError,
)
from .services import Group, MetadataRecord, Reader, Writer, new_group
from .services.storage import get_bucket

__all__ = [
    "Context",
    "Group",
    "MetadataRecord",
    "Reader",
    "Writer",
    "new_group",
    "get_bucket",
    "AtomicBlobError",
    "BlobNotFoundError",
    "NotInGroupError",
    "StoreError",
    "TransformError",
    "UpdateConflictError",
    "__version__",
]
