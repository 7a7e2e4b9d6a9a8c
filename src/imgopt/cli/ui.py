"""Unified UI components for the imgopt CLI.

Usage:
    from imgopt.cli.ui import success, error, info

    success("Converted 3 images")
    error("Cannot read directory", detail="Permission denied")
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from imgopt.cli.console import get_console

# Symbol constants for visual markers
MARK_SUCCESS = "✓"  # Checkmark
MARK_ERROR = "✗"  # Cross
MARK_INFO = "•"  # Bullet
MARK_LINE = "│"  # Vertical line


def success(text: str, *, console: Console | None = None) -> None:
    """Display a success message with checkmark."""
    c = console or get_console()
    c.print(f"[green]{MARK_SUCCESS}[/] {escape(text)}", soft_wrap=True)


def error(
    text: str, *, detail: str | None = None, console: Console | None = None
) -> None:
    """Display an error message with cross symbol.

    Args:
        text: The error message to display.
        detail: Optional detail text shown on a separate line.
        console: Optional console for output (defaults to shared console).
    """
    c = console or get_console()
    c.print(f"[red]{MARK_ERROR}[/] {escape(text)}", soft_wrap=True)
    if detail:
        c.print(f"  [dim]{MARK_LINE} {escape(detail)}[/]")


def info(text: str, *, console: Console | None = None) -> None:
    """Display an informational line with bullet."""
    c = console or get_console()
    c.print(f"{MARK_INFO} {escape(text)}", soft_wrap=True)
