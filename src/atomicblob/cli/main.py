"""atomicblob CLI entry point."""

from pathlib import Path
from typing import Optional

import typer

from ..errors import AtomicBlobError, NotInGroupError
from .common_options import backend_option, config_option, container_option, path_option, timeout_option
from .display import console, error, info, info_dict, locations_table, names, section, success, warning
from .utils import load_config_or_exit, make_context, open_group

app = typer.Typer(
    name="ablob",
    help="Atomic read-modify-write over named blobs in an object store",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich"
)


@app.command("list")
def list_entries(
    group: str = typer.Argument(..., help="Group name"),
    backend: Optional[str] = backend_option(),
    path: Optional[str] = path_option(),
    container: Optional[str] = container_option(),
    timeout: Optional[float] = timeout_option(),
    config: Optional[Path] = config_option(),
):
    """List the entries of a group.

    Example:
        ablob list settings --path /tmp/bucket
    """
    cfg = load_config_or_exit(config)
    try:
        g = open_group(group, cfg, backend, path, container)
        names(g.list(make_context(cfg, timeout)))
    except (AtomicBlobError, ValueError) as e:
        error(f"Failed to list group '{group}': {e}")
        raise typer.Exit(1)


@app.command()
def get(
    group: str = typer.Argument(..., help="Group name"),
    name: str = typer.Argument(..., help="Entry name"),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Output file (default: stdout)"
    ),
    backend: Optional[str] = backend_option(),
    path: Optional[str] = path_option(),
    container: Optional[str] = container_option(),
    timeout: Optional[float] = timeout_option(),
    config: Optional[Path] = config_option(),
):
    """Print the current content of an entry."""
    cfg = load_config_or_exit(config)
    try:
        g = open_group(group, cfg, backend, path, container)
        content = g.get(make_context(cfg, timeout), name)
    except NotInGroupError as e:
        error(str(e))
        raise typer.Exit(1)
    except (AtomicBlobError, ValueError) as e:
        error(f"Failed to read '{name}': {e}")
        raise typer.Exit(1)

    if output:
        output.write_bytes(content)
        success(f"Wrote {len(content)} bytes to {output}")
    else:
        typer.echo(content, nl=False)


@app.command()
def put(
    group: str = typer.Argument(..., help="Group name"),
    name: str = typer.Argument(..., help="Entry name"),
    file: Optional[Path] = typer.Option(
        None,
        "--file", "-f",
        help="Read new content from this file",
        exists=True,
        dir_okay=False,
        readable=True
    ),
    value: Optional[str] = typer.Option(None, "--value", help="New content as text"),
    backend: Optional[str] = backend_option(),
    path: Optional[str] = path_option(),
    container: Optional[str] = container_option(),
    timeout: Optional[float] = timeout_option(),
    config: Optional[Path] = config_option(),
):
    """Atomically replace the content of an entry.

    Example:
        ablob put settings feature-flags -f flags.json
    """
    if (file is None) == (value is None):
        error("Pass exactly one of --file or --value")
        raise typer.Exit(2)
    content = file.read_bytes() if file else value.encode("utf-8")

    cfg = load_config_or_exit(config)
    try:
        g = open_group(group, cfg, backend, path, container)
        g.operate(make_context(cfg, timeout), name, lambda _: content)
    except (AtomicBlobError, ValueError) as e:
        error(f"Failed to write '{name}': {e}")
        raise typer.Exit(1)
    success(f"Committed {len(content)} bytes to {group}/{name}")


@app.command()
def append(
    group: str = typer.Argument(..., help="Group name"),
    name: str = typer.Argument(..., help="Entry name"),
    text: str = typer.Argument(..., help="Text to append"),
    newline: bool = typer.Option(True, "--newline/--no-newline", help="Terminate the text with a newline"),
    backend: Optional[str] = backend_option(),
    path: Optional[str] = path_option(),
    container: Optional[str] = container_option(),
    timeout: Optional[float] = timeout_option(),
    config: Optional[Path] = config_option(),
):
    """Atomically append text to an entry, creating it if needed.

    Concurrent appends from any number of hosts never lose a line.
    """
    suffix = (text + "\n" if newline else text).encode("utf-8")

    cfg = load_config_or_exit(config)
    try:
        g = open_group(group, cfg, backend, path, container)
        result = g.operate(make_context(cfg, timeout), name, lambda current: current + suffix)
    except (AtomicBlobError, ValueError) as e:
        error(f"Failed to append to '{name}': {e}")
        raise typer.Exit(1)
    success(f"Appended to {group}/{name} ({len(result)} bytes)")


@app.command("info")
def show_info(
    group: str = typer.Argument(..., help="Group name"),
    backend: Optional[str] = backend_option(),
    path: Optional[str] = path_option(),
    container: Optional[str] = container_option(),
    timeout: Optional[float] = timeout_option(),
    config: Optional[Path] = config_option(),
):
    """Show the metadata record of a group."""
    cfg = load_config_or_exit(config)
    try:
        g = open_group(group, cfg, backend, path, container)
        record = g.info(make_context(cfg, timeout))
    except (AtomicBlobError, ValueError) as e:
        error(f"Failed to read group '{group}': {e}")
        raise typer.Exit(1)

    section(f"Group: {group}")
    info_dict({
        "Attribute": g.meta_key,
        "Schema version": record.version,
        "Serial": record.serial,
        "Entries": len(record.locations),
    })
    if record.locations:
        console.print(locations_table(record.locations))
    else:
        info("  (no entries)")


@app.command()
def version():
    """Show atomicblob version."""
    from .._version import get_version
    info(f"atomicblob version: {get_version()}")


def main():
    """Main CLI entry point."""
    try:
        app()
    except KeyboardInterrupt:
        warning("\nInterrupted by user")
        raise typer.Exit(1)


if __name__ == "__main__":
    main()
