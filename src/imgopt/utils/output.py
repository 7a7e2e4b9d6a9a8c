"""Output naming and collision resolution for imgopt."""

from __future__ import annotations

import re
import threading
import time
from collections.abc import Callable
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

from imgopt.constants import FALLBACK_FILENAME, MAX_SUFFIX_ATTEMPTS

# Characters invalid on Windows plus ASCII control characters
_INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_filename(name: str) -> str:
    """Sanitize a filename for cross-platform compatibility.

    Invalid characters become ``_``, trailing dots and spaces are removed
    (Windows rejects them), and an empty result falls back to ``"file"``.

    Examples:
        >>> sanitize_filename('a<b>:c')
        'a_b__c'
        >>> sanitize_filename(' ... ')
        'file'
    """
    name = name.strip()
    if not name:
        return FALLBACK_FILENAME
    name = _INVALID_NAME_CHARS.sub("_", name)
    name = name.rstrip(". ")
    return name or FALLBACK_FILENAME


def url_to_basename(url: str) -> str:
    """Derive an output base name (no extension) from an image URL.

    Examples:
        https://example.com/img/cat.png -> cat
        https://example.com/img/cat.png?w=200 -> cat
        https://example.com/ -> example
    """
    parsed = urlparse(url)
    segment = PurePosixPath(parsed.path).name if parsed.path else ""
    if not segment:
        return sanitize_filename(PurePosixPath(parsed.netloc or url).stem)
    return sanitize_filename(PurePosixPath(segment).stem)


def _probe(
    directory: Path,
    base_name: str,
    extension: str,
    is_taken: Callable[[Path], bool],
) -> Path:
    """Walk base.ext, base-1.ext, base-2.ext, ... until one is free."""
    ext = extension.lstrip(".")
    candidate = directory / f"{base_name}.{ext}"
    if not is_taken(candidate):
        return candidate

    for i in range(1, MAX_SUFFIX_ATTEMPTS):
        candidate = directory / f"{base_name}-{i}.{ext}"
        if not is_taken(candidate):
            return candidate

    # Fallback: use timestamp if every numbered name is taken
    return directory / f"{base_name}-{int(time.time())}.{ext}"


def resolve_output_path(directory: Path, base_name: str, extension: str) -> Path:
    """Pick the first output path that does not exist on disk.

    This only looks at the filesystem at call time: two calls without an
    intervening write return the same path.
    """
    return _probe(Path(directory), base_name, extension, lambda p: p.exists())


class OutputPathClaims:
    """Per-batch registry of output paths handed out to workers.

    A path is returned only if it neither exists on disk nor was claimed
    earlier in this batch, so two workers converting images with the same
    base name never target the same file. Paths written by other processes
    between the check and the write are not covered.
    """

    def __init__(self, lock: threading.Lock | None = None) -> None:
        self._lock = lock or threading.Lock()
        self._claimed: set[Path] = set()

    def _is_taken(self, path: Path) -> bool:
        return path in self._claimed or path.exists()

    def claim(self, directory: Path, base_name: str, extension: str) -> Path:
        """Resolve and reserve an output path."""
        with self._lock:
            path = _probe(Path(directory), base_name, extension, self._is_taken)
            self._claimed.add(path)
            return path

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._claimed

    def __len__(self) -> int:
        with self._lock:
            return len(self._claimed)
