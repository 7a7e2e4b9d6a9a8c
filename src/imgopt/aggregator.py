"""Thread-safe outcome accounting for a batch.

The aggregator owns the only mutable state shared between workers: the
converted/failed counters and the error log. Every mutation happens under
one lock, so no update is lost and ``converted + failed`` always equals the
number of jobs that have finished.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from imgopt.exceptions import JobError, OutputSetupError

ERROR_LOG_FORMAT = "{time:YYYY/MM/DD HH:mm:ss} {message}"

# Key bound on records destined for an error log file
ERROR_LOG_EXTRA_KEY = "error_log"


@dataclass(frozen=True)
class OutcomeCounters:
    """Immutable view of the batch counters."""

    converted: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.converted + self.failed


class ErrorLog:
    """Append-only failure log backed by a dedicated loguru file handler.

    Each failure becomes one ``YYYY/MM/DD HH:MM:SS message`` line. loguru
    serializes writes per handler, so concurrent writers never interleave
    within a line.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._token = uuid.uuid4().hex
        self._handler_id: int | None = None
        self._logger = logger.bind(**{ERROR_LOG_EXTRA_KEY: self._token})

    @classmethod
    def open(cls, path: Path) -> ErrorLog:
        """Create the log file and start accepting entries.

        Raises:
            OutputSetupError: If the file cannot be created
        """
        error_log = cls(path)
        try:
            error_log.path.parent.mkdir(parents=True, exist_ok=True)
            error_log.path.touch(exist_ok=True)
            token = error_log._token
            error_log._handler_id = logger.add(
                error_log.path,
                level="DEBUG",
                format=ERROR_LOG_FORMAT,
                colorize=False,
                encoding="utf-8",
                filter=lambda record: record["extra"].get(ERROR_LOG_EXTRA_KEY)
                == token,
            )
        except OSError as e:
            raise OutputSetupError(path, e) from e
        return error_log

    @property
    def is_open(self) -> bool:
        return self._handler_id is not None

    def write(self, message: str) -> None:
        """Append one entry."""
        if self._handler_id is None:
            raise RuntimeError(f"Error log is closed: {self.path}")
        self._logger.error(message)

    def close(self) -> None:
        """Flush and detach the file handler."""
        if self._handler_id is not None:
            try:
                logger.remove(self._handler_id)
            except ValueError:
                pass  # Handler already removed
            self._handler_id = None

    def __enter__(self) -> ErrorLog:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: ARG002
        self.close()
        return False


def format_failure(identity: str, cause: BaseException) -> str:
    """Build the error-log message for a failed job."""
    if isinstance(cause, JobError):
        return str(cause)
    return f"process {identity}: {type(cause).__name__}: {cause}"


class OutcomeAggregator:
    """Mutex-guarded converted/failed counters plus the error log."""

    def __init__(
        self,
        error_log: ErrorLog | None = None,
        lock: threading.Lock | None = None,
    ) -> None:
        self.error_log = error_log
        self.lock = lock or threading.Lock()
        self._converted = 0
        self._failed = 0

    def record_success(self) -> None:
        with self.lock:
            self._converted += 1

    def record_failure(self, identity: str, cause: BaseException) -> str:
        """Count a failed job and append it to the error log.

        The failure is counted even if the log entry cannot be written.

        Returns:
            The message meant for the log
        """
        message = format_failure(identity, cause)
        with self.lock:
            self._failed += 1
            if self.error_log is not None:
                try:
                    self.error_log.write(message)
                except Exception as e:
                    logger.opt(exception=e).warning(
                        f"Could not write error log entry: {message}"
                    )
        logger.debug(f"Failed: {message}")
        return message

    def snapshot(self) -> OutcomeCounters:
        with self.lock:
            return OutcomeCounters(converted=self._converted, failed=self._failed)
