"""Shared utilities for CLI commands."""

import logging
from pathlib import Path

import typer

from ..context import Context
from ..core.config import AtomicBlobConfig
from ..errors import ConfigError
from ..services import Group
from ..services.storage import get_bucket
from .display import error, info


def load_config_or_exit(config_path: Path | None = None) -> AtomicBlobConfig:
    """Load configuration or exit with a helpful message.

    Args:
        config_path: Explicit configuration file, if given on the command line

    Returns:
        AtomicBlobConfig instance (defaults when no file exists)

    Raises:
        typer.Exit: If the configuration file is invalid
    """
    try:
        config = AtomicBlobConfig.load(config_path)
    except ConfigError as e:
        error(str(e))
        info("Fix the configuration file or pass --config with a valid one")
        raise typer.Exit(1)

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return config


def open_group(
    group_name: str,
    config: AtomicBlobConfig,
    backend: str | None = None,
    path: str | None = None,
    container: str | None = None,
) -> Group:
    """Build a Group from configuration plus command line overrides."""
    updates = {}
    if backend:
        updates["backend"] = backend
    if path:
        updates["local_path"] = path
    if container:
        updates["azure"] = config.azure.model_copy(update={"container": container})
    if updates:
        config = config.model_copy(update=updates)

    bucket = get_bucket(config.resolved_backend(), **config.bucket_kwargs())
    return Group(bucket, group_name)


def make_context(config: AtomicBlobConfig, timeout: float | None = None) -> Context:
    """Root context for one command, bounded by --timeout or the configured default."""
    ctx = Context.background()
    seconds = timeout if timeout is not None else config.timeout_seconds
    if seconds:
        ctx = ctx.with_timeout(seconds)
    return ctx
