"""Path utilities for directory management.

This module provides helper functions for locating and creating the
output directories used by imgopt.
"""

from __future__ import annotations

import os
import sys
from datetime import datetime
from pathlib import Path

from imgopt.constants import (
    DOWNLOADS_DIRNAME,
    ENV_DOWNLOADS_DIR,
    OUTPUT_DIR_PREFIX,
    OUTPUT_DIR_TIME_FORMAT,
)
from imgopt.exceptions import OutputSetupError


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists

    Returns:
        The same path (for chaining)

    Examples:
        >>> ensure_dir(Path("/tmp/output"))
        PosixPath('/tmp/output')
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_downloads_dir() -> Path:
    """Locate the user's Downloads directory.

    Resolution order:
    1. ``IMGOPT_DOWNLOADS_DIR`` environment variable
    2. ``%USERPROFILE%\\Downloads`` on Windows, ``~/Downloads`` elsewhere
    3. Current working directory
    """
    override = os.environ.get(ENV_DOWNLOADS_DIR)
    if override:
        return Path(override).expanduser()

    if sys.platform == "win32":
        profile = os.environ.get("USERPROFILE")
        if profile:
            return Path(profile) / DOWNLOADS_DIRNAME
    else:
        try:
            home = Path.home()
        except (RuntimeError, KeyError):
            home = None
        if home and str(home) not in ("", "."):
            return home / DOWNLOADS_DIRNAME

    return Path.cwd()


def create_output_root(
    parent: Path | None = None, now: datetime | None = None
) -> Path:
    """Create the timestamped output folder for a batch.

    Args:
        parent: Directory to create it in (defaults to Downloads)
        now: Timestamp for the folder name (defaults to the current time)

    Returns:
        Path like ``~/Downloads/webp-20250101-120000``

    Raises:
        OutputSetupError: If the folder cannot be created
    """
    parent = parent if parent is not None else get_downloads_dir()
    stamp = (now or datetime.now()).strftime(OUTPUT_DIR_TIME_FORMAT)
    folder = parent / f"{OUTPUT_DIR_PREFIX}{stamp}"
    try:
        return ensure_dir(folder)
    except OSError as e:
        raise OutputSetupError(folder, e) from e
