"""Shared rich consoles, one per output stream."""

from __future__ import annotations

from typing import Any

from rich.console import Console

_consoles: dict[str, Console] = {}


def _shared(name: str, **kwargs: Any) -> Console:
    console = _consoles.get(name)
    if console is None:
        console = _consoles[name] = Console(**kwargs)
    return console


def get_console() -> Console:
    """Console for regular output (stdout)."""
    return _shared("stdout")


def get_stderr_console() -> Console:
    """Console for the progress bar (stderr)."""
    return _shared("stderr", stderr=True)


def reset_consoles() -> None:
    """Forget cached consoles so the next call binds to the current streams."""
    _consoles.clear()
