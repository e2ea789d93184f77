"""Rich console output utilities for pure-compiled-cli.

This module provides formatted console output with Rich, supporting
colored success/error/warning messages and tables, and respecting the
NO_COLOR environment variable and the ``--no-color`` flag.
"""

from __future__ import annotations

import os
from typing import Any

from rich.console import Console
from rich.table import Table

# Rich respects NO_COLOR on its own; --no-color is applied through set_no_color
_force_no_color = os.environ.get("NO_COLOR") is not None


def create_console(no_color: bool = False) -> Console:
    """Create a Rich Console with the requested color settings.

    Args:
        no_color: Disable colored output. NO_COLOR is honored as well.

    Returns:
        Configured Console instance.
    """
    force_terminal = None
    if no_color or _force_no_color:
        force_terminal = False
    return Console(force_terminal=force_terminal, no_color=no_color or _force_no_color)


# Default console instance
console = create_console()


def success(message: str, **kwargs: Any) -> None:
    """Print a success message with a green checkmark.

    Args:
        message: The message to display.
        **kwargs: Additional arguments passed to console.print().

    Example:
        >>> success("Wrote 4 compiled modules")
        ✓ Wrote 4 compiled modules
    """
    console.print(f"[green]✓[/green] {message}", **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print an error message with a red X.

    Args:
        message: The error message to display.
        **kwargs: Additional arguments passed to console.print().

    Example:
        >>> error('Unknown repositories: "nope"')
        ✗ Unknown repositories: "nope"
    """
    console.print(f"[red]✗[/red] {message}", **kwargs)


def warning(message: str, **kwargs: Any) -> None:
    """Print a warning message with a yellow triangle.

    Args:
        message: The warning message to display.
        **kwargs: Additional arguments passed to console.print().

    Example:
        >>> warning("Cache file is stale, rebuilding")
        ⚠ Cache file is stale, rebuilding
    """
    console.print(f"[yellow]⚠[/yellow] {message}", **kwargs)


def info(message: str, **kwargs: Any) -> None:
    """Print an informational message.

    Args:
        message: The message to display.
        **kwargs: Additional arguments passed to console.print().

    Example:
        >>> info("Repositories: repo-a, repo-b")
        Repositories: repo-a, repo-b
    """
    console.print(message, **kwargs)


def print_table(title: str, columns: list[str], rows: list[list[str]]) -> None:
    """Print rows as a Rich table.

    Args:
        title: Table title.
        columns: Column headers.
        rows: Cell values, one list per row.

    Example:
        >>> print_table("Repositories", ["Name"], [["platform"], ["repo-a"]])
    """
    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*row)
    console.print(table)


def set_no_color(no_color: bool) -> None:
    """Update the global console to enable or disable colors.

    Args:
        no_color: If True, disable colored output.

    Note:
        This replaces the module-level console instance.
    """
    global console
    console = create_console(no_color=no_color)
