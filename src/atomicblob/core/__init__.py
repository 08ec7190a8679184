"""Core naming and configuration for atomicblob."""

from .config import AtomicBlobConfig
from .naming import META_KEY_PREFIX, blob_key, meta_key, random_suffix

__all__ = ["AtomicBlobConfig", "META_KEY_PREFIX", "blob_key", "meta_key", "random_suffix"]
