"""Custom exceptions for imgopt."""

from __future__ import annotations

from pathlib import Path


class ImgoptError(Exception):
    """Base exception class for imgopt."""

    pass


# =============================================================================
# Setup errors (fatal, raised before any job is dispatched)
# =============================================================================


class DirectoryReadError(ImgoptError):
    """Source directory cannot be opened or listed."""

    def __init__(self, directory: Path | str, cause: Exception | None = None) -> None:
        self.directory = Path(directory)
        self.cause = cause
        message = f"Cannot read directory {directory}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class OutputSetupError(ImgoptError):
    """Output root or error log cannot be created."""

    def __init__(self, path: Path | str, cause: Exception | None = None) -> None:
        self.path = Path(path)
        self.cause = cause
        message = f"Cannot prepare output {path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class NetworkError(ImgoptError):
    """HTTP request could not be completed."""

    def __init__(self, url: str, cause: Exception | None = None) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Request to {url} failed: {cause}")


# =============================================================================
# Per-job errors (caught at the worker boundary, never fatal)
# =============================================================================


class JobError(ImgoptError):
    """A single conversion job failed.

    Attributes:
        identity: Path or URL of the job
        cause: Underlying exception, if any
    """

    stage = "process"

    def __init__(
        self, identity: str, message: str, cause: Exception | None = None
    ) -> None:
        self.identity = identity
        self.cause = cause
        super().__init__(f"{self.stage} {identity}: {message}")


class JobFetchError(JobError):
    """Source bytes could not be obtained (open or download)."""

    stage = "fetch"


class JobDecodeError(JobError):
    """Source bytes are not a recognized image."""

    stage = "decode"


class JobEncodeError(JobError):
    """Encoder rejected the image."""

    stage = "encode"


class JobWriteError(JobError):
    """Output directory or file could not be written."""

    stage = "write"
