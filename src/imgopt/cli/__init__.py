"""CLI package for imgopt.

Usage:
    from imgopt.cli import app
    from imgopt.cli import ui
"""

from __future__ import annotations

from imgopt.cli import ui
from imgopt.cli.main import app

__all__ = ["app", "ui"]
