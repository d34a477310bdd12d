"""
Terminal output for promrdf commands, built on rich.

Results go to stdout, diagnostics to stderr. Rich honours NO_COLOR on its
own; FORCE_COLOR additionally forces styling when stdout is not a TTY.
"""

from __future__ import annotations

import os
from typing import Mapping, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

PROMRDF_THEME = Theme(
    {
        "info": "#88C0D0",
        "success": "#A3BE8C",
        "warning": "#EBCB8B",
        "error": "#BF616A bold",
        "key": "#81A1C1",
        "muted": "#D8DEE9",
    }
)

console = Console(theme=PROMRDF_THEME, force_terminal=os.environ.get("FORCE_COLOR") is not None)
err_console = Console(theme=PROMRDF_THEME, stderr=True)


def _say(target: Console, style: str, marker: str, message: str) -> None:
    target.print(f"[{style}]{marker} {escape(message)}[/{style}]")


def success(message: str) -> None:
    _say(console, "success", "✓", message)


def error(message: str) -> None:
    """Print an error to stderr."""
    _say(err_console, "error", "✗", message)


def warning(message: str) -> None:
    _say(console, "warning", "⚠", message)


def info(message: str) -> None:
    _say(console, "info", "ℹ", message)


def header(title: str) -> None:
    console.print()
    console.print(Panel(f"[bold]{escape(title)}[/bold]", border_style="key", expand=False))


def print_table(title: str, columns: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
    """
    Print rows as a table.

    Columns whose cells are all integers are right-aligned.
    """
    table = Table(title=title, title_justify="left")
    for index, column in enumerate(columns):
        numeric = bool(rows) and all(row[index].lstrip("-").isdigit() for row in rows)
        table.add_column(column, justify="right" if numeric else "left")
    for row in rows:
        table.add_row(*(escape(cell) for cell in row))
    console.print(table)


def print_key_value(items: Mapping[str, str]) -> None:
    """Print an aligned two-column summary."""
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="key")
    grid.add_column()
    for key, value in items.items():
        grid.add_row(f"{key}:", escape(value))
    console.print(grid)
