"""Common Typer options shared across CLI commands.

This module provides reusable option definitions to ensure consistency
and reduce duplication across CLI modules.
"""

import typer


def backend_option(help_text: str = "Bucket backend (auto, local, azure)") -> typer.Option:
    """Create a standard backend option.

    Args:
        help_text: Custom help text

    Returns:
        Configured Typer Option
    """
    return typer.Option(None, "--backend", "-b", help=help_text)


def path_option(help_text: str = "Root directory for the local backend") -> typer.Option:
    return typer.Option(None, "--path", "-p", help=help_text)


def container_option(help_text: str = "Azure container used as the bucket") -> typer.Option:
    return typer.Option(None, "--container", help=help_text)


def timeout_option(help_text: str = "Deadline for the operation in seconds") -> typer.Option:
    return typer.Option(None, "--timeout", "-t", min=0.0, help=help_text)


def config_option(help_text: str = "Configuration file (YAML)") -> typer.Option:
    """Create a standard configuration file option.

    Args:
        help_text: Custom help text

    Returns:
        Configured Typer Option
    """
    return typer.Option(
        None,
        "--config",
        "-c",
        help=help_text,
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    )


__all__ = [
    "backend_option",
    "path_option",
    "container_option",
    "timeout_option",
    "config_option",
]
