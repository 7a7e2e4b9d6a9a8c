"""Progress reporting for batch conversion.

Workers never touch the progress bar directly. They post "advance" messages
to a bounded queue, and a single consumer thread applies them to a rich
progress bar, so rendering cadence is decoupled from worker execution.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable

from loguru import logger
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from imgopt.constants import PROGRESS_QUEUE_SIZE

_STOP = object()


class ProgressReporter:
    """Thread-safe "advance by N" progress sink.

    Usage:
        with ProgressReporter(total=len(jobs)) as progress:
            ... workers call progress.advance() ...
        # all posted advances have been applied here
    """

    def __init__(
        self,
        total: int,
        description: str = "Converting",
        console: Console | None = None,
        enabled: bool = True,
        on_advance: Callable[[int], None] | None = None,
        maxsize: int = PROGRESS_QUEUE_SIZE,
    ) -> None:
        """Initialize progress reporter.

        Args:
            total: Number of jobs in the batch
            description: Label shown next to the bar
            console: Console to render on (defaults to a new stderr console)
            enabled: Whether to render a bar at all
            on_advance: Extra callback invoked by the consumer thread
            maxsize: Capacity of the message queue
        """
        self.total = total
        self.enabled = enabled
        self.completed = 0
        self._on_advance = on_advance
        self._messages: queue.Queue[object] = queue.Queue(maxsize=max(1, maxsize))
        self._consumer: threading.Thread | None = None
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        if enabled:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[bold blue]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=console or Console(stderr=True),
                transient=False,
            )
            self._task_id = self._progress.add_task(description, total=total)

    def start(self) -> None:
        """Start rendering and the consumer thread."""
        if self._consumer is not None:
            return
        if self._progress is not None:
            self._progress.start()
        self._consumer = threading.Thread(
            target=self._consume, name="imgopt-progress", daemon=True
        )
        self._consumer.start()

    def advance(self, n: int = 1) -> None:
        """Report ``n`` finished jobs. Blocks only while the queue is full."""
        self._messages.put(n)

    def close(self) -> None:
        """Apply every pending message, then stop rendering."""
        if self._consumer is None:
            return
        self._messages.put(_STOP)
        self._consumer.join()
        self._consumer = None
        if self._progress is not None:
            self._progress.stop()

    def _consume(self) -> None:
        while True:
            message = self._messages.get()
            if message is _STOP:
                return
            step = int(message)  # type: ignore[call-overload]
            self.completed += step
            # The consumer must outlive a failed update
            try:
                if self._progress is not None and self._task_id is not None:
                    self._progress.advance(self._task_id, step)
                if self._on_advance is not None:
                    self._on_advance(step)
            except Exception as e:
                logger.opt(exception=e).warning(f"Progress update failed: {e}")

    def __enter__(self) -> ProgressReporter:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: ARG002
        self.close()
        return False
