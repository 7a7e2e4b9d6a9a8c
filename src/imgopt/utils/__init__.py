"""imgopt utilities."""

from imgopt.utils.fs import atomic_write_bytes
from imgopt.utils.output import (
    OutputPathClaims,
    resolve_output_path,
    sanitize_filename,
    url_to_basename,
)
from imgopt.utils.paths import create_output_root, ensure_dir, get_downloads_dir
from imgopt.utils.progress import ProgressReporter

__all__ = [
    "OutputPathClaims",
    "ProgressReporter",
    "atomic_write_bytes",
    "create_output_root",
    "ensure_dir",
    "get_downloads_dir",
    "resolve_output_path",
    "sanitize_filename",
    "url_to_basename",
]
