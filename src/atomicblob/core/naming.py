"""Naming conventions for group attribute keys and blob objects.

Blob keys follow ``{name}/{suffix}``, where suffix is 40 lowercase hex
characters from 20 random bytes. Suffixes are never coordinated; the
collision probability is treated as zero.
"""

import secrets

# Reserved prefix for group records in the bucket attribute map
META_KEY_PREFIX = "atomicblob-meta-key-no-touchie"

SUFFIX_BYTES = 20


def random_suffix() -> str:
    """Generate a fresh blob suffix (40 lowercase hex characters)."""
    return secrets.token_bytes(SUFFIX_BYTES).hex()


def meta_key(group: str) -> str:
    """Attribute key holding the metadata record of ``group``.

    Pattern: {META_KEY_PREFIX}-{group}
    """
    return f"{META_KEY_PREFIX}-{group}"


def blob_key(name: str, suffix: str) -> str:
    """Object key for one version of entry ``name``."""
    return f"{name}/{suffix}"


def validate_group_name(group: str) -> str:
    if not group:
        raise ValueError("Group name must not be empty")
    return group


def validate_entry_name(name: str) -> str:
    """Reject names that would produce ambiguous blob keys."""
    if not name:
        raise ValueError("Entry name must not be empty")
    if name.startswith("/") or name.endswith("/"):
        raise ValueError(f"Entry name must not start or end with '/': {name!r}")
    if ".." in name.split("/"):
        raise ValueError(f"Entry name must not contain '..' segments: {name!r}")
    return name


def split_blob_key(key: str) -> tuple[str, str]:
    """Inverse of ``blob_key``: ``"a/b/<suffix>"`` -> ``("a/b", "<suffix>")``."""
    name, _, suffix = key.rpartition("/")
    return name, suffix
