"""Version information for atomicblob.

Provides version string and git commit hash when available.
"""

import subprocess
from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


def _get_version_from_metadata() -> str:
    """Get version from package metadata."""
    try:
        return version("atomicblob")
    except PackageNotFoundError:
        return "0.0.0-unknown"


def _get_git_hash_from_repo() -> str | None:
    """Get git hash from local repo (development mode)."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
            cwd=Path(__file__).parent,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode == 0:
        return result.stdout.strip()
    return None


@lru_cache(maxsize=1)
def get_version_info() -> dict:
    """Get full version information.

    Returns:
        Dict with 'version', 'git_hash', and 'full' keys.
    """
    ver = _get_version_from_metadata()
    git_hash = _get_git_hash_from_repo()

    full = ver
    if git_hash:
        full = f"{ver}+g{git_hash}"

    return {
        "version": ver,
        "git_hash": git_hash,
        "full": full,
    }


def get_version() -> str:
    """Get the full version string with git hash if available."""
    return get_version_info()["full"]
