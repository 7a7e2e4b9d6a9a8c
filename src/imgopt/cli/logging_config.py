"""Logging setup for the imgopt CLI.

Everything goes through loguru. Standard-library loggers of httpx and Pillow
are forwarded at WARNING and above, the console sink can be paused while the
progress bar owns the terminal, and error-log records stay in their own file.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from click import Context
from loguru import logger

from imgopt import __version__
from imgopt.aggregator import ERROR_LOG_EXTRA_KEY
from imgopt.cli.console import get_console
from imgopt.constants import ENV_LOG_DIR

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{message}</cyan>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | {thread.name: <16} | "
    "{name}:{line} | {message}"
)

FORWARDED_LOGGERS = ("httpx", "httpcore", "PIL")


class InterceptHandler(logging.Handler):
    """Re-emit stdlib log records through loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(exception=record.exc_info).log(
            level, f"[{record.name}] {record.getMessage()}"
        )


class ConsoleFilter:
    """Console sink filter: DEBUG only when verbose, never error-log entries."""

    def __init__(self, verbose: bool) -> None:
        self.verbose = verbose

    def __call__(self, record: Any) -> bool:
        if ERROR_LOG_EXTRA_KEY in record["extra"]:
            return False
        return self.verbose or record["level"].no >= logging.INFO


def add_console_sink(verbose: bool) -> int:
    return logger.add(
        sys.stderr,
        level="DEBUG",
        format=CONSOLE_FORMAT,
        filter=ConsoleFilter(verbose),
    )


class LoggingContext:
    """Pause the console sink for the duration of a ``with`` block.

    The progress bar redraws in place, so log lines written meanwhile would
    tear it. File sinks keep receiving records.
    """

    def __init__(self, console_handler_id: int | None, verbose: bool = False) -> None:
        self.handler_id = console_handler_id
        self.verbose = verbose
        self._paused = False

    def __enter__(self) -> LoggingContext:
        if self.handler_id is None:
            return self
        try:
            logger.remove(self.handler_id)
        except ValueError:
            return self  # already gone
        self._paused = True
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        if self._paused:
            self.handler_id = add_console_sink(self.verbose)
            self._paused = False
        return False


def forward_stdlib_logging(
    names: Iterable[str] = FORWARDED_LOGGERS, level: int = logging.WARNING
) -> None:
    handler = InterceptHandler()
    for name in names:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [handler]
        std_logger.propagate = False
        std_logger.setLevel(level)


def setup_logging(
    verbose: bool,
    log_dir: str | Path | None = None,
    log_level: str = "DEBUG",
) -> tuple[int, Path | None]:
    """Install the console sink, an optional debug file and stdlib forwarding.

    ``IMGOPT_LOG_DIR`` takes precedence over ``log_dir``.

    Returns:
        ``(console_handler_id, log_file)``. ``log_file`` is None when no log
        directory is configured.
    """
    logger.remove()
    console_handler_id = add_console_sink(verbose)

    log_file: Path | None = None
    directory = os.environ.get(ENV_LOG_DIR) or log_dir
    if directory:
        folder = Path(directory).expanduser()
        folder.mkdir(parents=True, exist_ok=True)
        log_file = folder / f"imgopt_{datetime.now():%Y%m%d_%H%M%S_%f}.log"
        logger.add(log_file, level=log_level, format=FILE_FORMAT, encoding="utf-8")

    forward_stdlib_logging()
    return console_handler_id, log_file


def print_version(ctx: Context, _param: Any, value: bool) -> None:
    """Eager ``--version`` callback."""
    if value and not ctx.resilient_parsing:
        get_console().print(f"imgopt {__version__}")
        ctx.exit(0)
