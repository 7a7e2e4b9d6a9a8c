"""Atomic file writes for converted images."""

from __future__ import annotations

import contextlib
import os
import sys
import tempfile
import time
from pathlib import Path

# os.replace on Windows can hit a transient lock held by scanners or indexers
_REPLACE_ATTEMPTS = 5 if sys.platform == "win32" else 1
_REPLACE_BACKOFF = 0.05  # seconds, multiplied by the attempt number


def _replace(src: Path, dst: Path) -> None:
    """Rename ``src`` over ``dst``, retrying briefly on Windows lock errors."""
    for attempt in range(1, _REPLACE_ATTEMPTS + 1):
        try:
            os.replace(src, dst)
            return
        except PermissionError:
            if attempt == _REPLACE_ATTEMPTS:
                raise
            time.sleep(_REPLACE_BACKOFF * attempt)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` through a sibling temp file.

    The parent directory is created if needed. Readers see either no file
    or the complete one, never a partial image.

    Raises:
        OSError: If the directory or file cannot be written
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        dir=target.parent, prefix=f".{target.name}.", suffix=".part"
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        _replace(tmp_path, target)
    except Exception:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise
