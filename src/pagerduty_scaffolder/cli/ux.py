"""
CLI output helpers built on rich.

Respects NO_COLOR and FORCE_COLOR.
"""

from __future__ import annotations

import os

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

# Nord color palette (https://www.nordtheme.com/)
SCAFFOLDER_THEME = Theme(
    {
        "info": "#88C0D0",
        "success": "#A3BE8C",
        "warning": "#EBCB8B",
        "error": "#BF616A bold",
        "muted": "#D8DEE9",
    }
)

console = Console(
    theme=SCAFFOLDER_THEME,
    force_terminal=os.environ.get("FORCE_COLOR") is not None,
    no_color=os.environ.get("NO_COLOR") is not None,
)


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]✓ {message}[/success]")


def error(message: str) -> None:
    """Print an error message."""
    console.print(f"[error]✗ {message}[/error]")


def info(message: str) -> None:
    console.print(f"[info]ℹ {message}[/info]")


def print_table(title: str, columns: list[str], rows: list[list[str]]) -> None:
    table = Table(title=title, header_style="bold")
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*row)
    console.print(table)


def print_key_value(items: dict[str, str], title: str | None = None) -> None:
    """Print aligned key/value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    width = max((len(k) for k in items), default=0)
    for key, value in items.items():
        console.print(f"   [muted]{key.ljust(width)}:[/muted] {value}")
