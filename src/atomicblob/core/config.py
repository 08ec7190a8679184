"""atomicblob configuration management.

Configuration is read from ~/.atomicblob/config.yaml, or from the file
named by ATOMICBLOB_CONFIG. A missing file means all defaults.
"""

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from .config_base import ConfigModel

CONFIG_FILE = Path.home() / ".atomicblob" / "config.yaml"
CONFIG_ENV_VAR = "ATOMICBLOB_CONFIG"


class AzureConfig(BaseModel):
    """Azure Blob Storage settings."""

    container: str = "atomicblob"
    """Container used as the bucket."""

    connection_string: str | None = None
    """Optional connection string (defaults to AZURE_STORAGE_CONNECTION_STRING)."""


class AtomicBlobConfig(ConfigModel):
    """Main configuration model for atomicblob."""

    backend: Literal["auto", "memory", "local", "azure"] = "auto"
    """Bucket backend; "auto" picks Azure when a connection string is set."""

    local_path: str = "/tmp/atomicblob/bucket"
    """Root directory for the local backend."""

    azure: AzureConfig = Field(default_factory=AzureConfig)
    """Azure-specific settings."""

    timeout_seconds: float | None = Field(default=None, gt=0)
    """Default deadline for one operation; None retries without bound."""

    log_level: str = "WARNING"
    """Logging level for the CLI."""

    @staticmethod
    def get_config_path() -> Path:
        """Get the configuration file path, honoring ATOMICBLOB_CONFIG."""
        override = os.environ.get(CONFIG_ENV_VAR)
        return Path(override) if override else CONFIG_FILE

    @classmethod
    def load(cls, path: Path | None = None) -> "AtomicBlobConfig":
        """Load configuration from file, or defaults when it doesn't exist.

        Raises:
            ConfigError: If the file exists but is invalid
        """
        return cls.load_or_default(path or cls.get_config_path())

    def save(self, path: Path | None = None) -> None:
        """Save configuration, creating the parent directory if needed."""
        self.to_yaml(path or self.get_config_path())

    def resolved_backend(self) -> str:
        """Concrete backend name, resolving "auto" from configured credentials."""
        if self.backend != "auto":
            return self.backend
        if self.azure.connection_string or os.environ.get("AZURE_STORAGE_CONNECTION_STRING"):
            return "azure"
        return "local"

    def bucket_kwargs(self) -> dict:
        """Keyword arguments for ``get_bucket`` matching this configuration."""
        backend = self.resolved_backend()
        if backend == "azure":
            return {
                "container": self.azure.container,
                "connection_string": self.azure.connection_string,
            }
        if backend == "memory":
            return {}
        return {"base_path": self.local_path}
