"""Consolidated display utilities for CLI commands."""
from rich.console import Console
from rich.table import Table
from typing import Any, Dict, Iterable

console = Console()
err_console = Console(stderr=True)


def success(message: str) -> None:
    """Print success message."""
    console.print(f"[green]✓ {message}[/green]")


def warning(message: str) -> None:
    """Print warning message."""
    err_console.print(f"[yellow]⚠️  {message}[/yellow]")


def error(message: str) -> None:
    """Print error message."""
    err_console.print(f"[red]❌ {message}[/red]")


def info(message: str) -> None:
    """Print info message."""
    console.print(message)


def section(title: str) -> None:
    """Print section header."""
    console.print(f"\n[bold]{title}[/bold]")


def info_dict(data: Dict[str, Any], indent: str = "  ") -> None:
    """Print a dictionary as indented key-value pairs."""
    for key, value in data.items():
        console.print(f"{indent}{key}: {value}")


def locations_table(locations: Dict[str, str]) -> Table:
    """Build a table of entry names and their live blob suffixes."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Live blob")
    for name in sorted(locations):
        table.add_row(name, f"{name}/{locations[name]}")
    return table


def names(items: Iterable[str]) -> None:
    """Print one name per line, sorted."""
    for item in sorted(items):
        console.print(item, markup=False, highlight=False)
