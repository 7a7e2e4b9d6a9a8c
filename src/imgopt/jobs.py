"""Job descriptors and job discovery.

A job is one unit of conversion work: either a local image file or a remote
image URL. Jobs are immutable; the batch runner hands each one to exactly one
worker.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from loguru import logger

from imgopt.constants import ALLOWED_EXTENSIONS
from imgopt.exceptions import DirectoryReadError


@dataclass(frozen=True)
class LocalFileJob:
    """Convert an image file from the local filesystem."""

    path: Path

    @property
    def identity(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class RemoteUrlJob:
    """Download and convert an image from a URL."""

    url: str

    @property
    def identity(self) -> str:
        return self.url


Job = Union[LocalFileJob, RemoteUrlJob]


def is_image_file(path: Path | str) -> bool:
    """Check whether a path has one of the accepted image extensions.

    The comparison is case-insensitive, so ``photo.JPG`` matches.
    """
    suffix = Path(path).suffix.lower().lstrip(".")
    return suffix in ALLOWED_EXTENSIONS


def collect_local_files(directory: Path | str, recursive: bool = False) -> list[Path]:
    """List image files under a directory.

    Args:
        directory: Directory to scan
        recursive: Walk the whole subtree instead of direct children only

    Returns:
        Sorted list of absolute image paths (may be empty)

    Raises:
        DirectoryReadError: If the directory (or, when recursive, any
            subdirectory) cannot be listed
    """
    root = Path(directory).expanduser().absolute()
    files: list[Path] = []

    if recursive:

        def _raise(error: OSError) -> None:
            raise DirectoryReadError(error.filename or root, error)

        if not root.is_dir():
            raise DirectoryReadError(root, NotADirectoryError("not a directory"))
        for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise):
            base = Path(dirpath)
            files.extend(base / name for name in filenames if is_image_file(name))
    else:
        try:
            with os.scandir(root) as entries:
                for entry in entries:
                    if not entry.is_dir() and is_image_file(entry.name):
                        files.append(root / entry.name)
        except OSError as e:
            raise DirectoryReadError(root, e) from e

    files.sort()
    logger.debug(f"Found {len(files)} image(s) in {root} (recursive={recursive})")
    return files


def parse_url_list(text: str | None) -> list[str]:
    """Split a comma-separated URL string.

    Entries are trimmed and empty ones dropped. Duplicates are kept and no
    validation happens here; bad URLs fail later when fetched.
    """
    if not text:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]


def collect_jobs(
    directory: Path | str | None = None,
    recursive: bool = False,
    urls: str | None = None,
) -> list[Job]:
    """Build the ordered job list for one batch.

    Directory jobs come first, then URL jobs in the order given.

    Raises:
        DirectoryReadError: If ``directory`` is given but cannot be listed
    """
    jobs: list[Job] = []
    if directory:
        jobs.extend(
            LocalFileJob(path=p) for p in collect_local_files(directory, recursive)
        )
    jobs.extend(RemoteUrlJob(url=u) for u in parse_url_list(urls))
    return jobs
