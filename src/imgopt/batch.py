"""Concurrent batch conversion engine.

A fixed pool of worker threads consumes jobs from a bounded hand-off queue.
Each job is processed independently; failures are recorded and counted but
never stop the pool. The orchestrator returns a summary only after every
worker has drained the queue and exited.
"""

from __future__ import annotations

import queue
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from loguru import logger
from PIL import Image

from imgopt.aggregator import OutcomeAggregator, OutcomeCounters
from imgopt.codec import (
    DecodeError,
    EncodeError,
    EncodeOptions,
    decode_image,
    effective_encode_options,
    encode_webp,
)
from imgopt.config import ConversionOptions
from imgopt.constants import DEFAULT_WORKERS, OUTPUT_EXTENSION
from imgopt.exceptions import (
    JobDecodeError,
    JobEncodeError,
    JobError,
    JobFetchError,
    JobWriteError,
    NetworkError,
)
from imgopt.fetch import fetch_url
from imgopt.jobs import Job, LocalFileJob, RemoteUrlJob
from imgopt.utils.fs import atomic_write_bytes
from imgopt.utils.output import OutputPathClaims, url_to_basename

# Collaborator signatures (injectable for tests)
ReadFileFn = Callable[[Path], bytes]
FetchFn = Callable[[str], "tuple[bytes, int]"]
DecodeFn = Callable[[bytes], "tuple[Image.Image, str]"]
EncodeFn = Callable[[Image.Image, EncodeOptions], bytes]
WriteFn = Callable[[Path, bytes], None]
ProgressFn = Callable[[int], None]

# Put once per worker after the last job; a worker exits when it receives it
_CLOSED = object()


class JobStatus(str, Enum):
    """Status of a job in batch processing.

    State transitions:
        PENDING -> PROCESSING -> SUCCEEDED
                              -> FAILED

    Jobs are never retried: FAILED is final.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class JobOutcome:
    """Result of processing a single job.

    Attributes:
        job: The job descriptor
        status: Final status (SUCCEEDED or FAILED once processed)
        output_path: Written WebP file (None if failed)
        error: Error message if status is FAILED
        started_at: ISO timestamp when processing started
        duration: Processing time in seconds
    """

    job: Job
    status: JobStatus = JobStatus.PENDING
    output_path: Path | None = None
    error: str | None = None
    started_at: str | None = None
    duration: float | None = None


@dataclass
class BatchSummary:
    """Final state of a drained batch."""

    converted: int
    failed: int
    output_dir: Path
    error_log: Path | None = None
    outcomes: list[JobOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.converted + self.failed


def _read_file(path: Path) -> bytes:
    return Path(path).read_bytes()


class JobProcessor:
    """Turns one job into one WebP file.

    Each stage raises the matching ``JobError`` subclass; nothing is caught
    here beyond translating collaborator errors.
    """

    def __init__(
        self,
        options: ConversionOptions,
        output_dir: Path,
        claims: OutputPathClaims | None = None,
        read_file: ReadFileFn = _read_file,
        fetch: FetchFn = fetch_url,
        decode: DecodeFn = decode_image,
        encode: EncodeFn = encode_webp,
        write: WriteFn = atomic_write_bytes,
    ) -> None:
        self.options = options
        self.output_dir = Path(output_dir)
        self.claims = claims if claims is not None else OutputPathClaims()
        self._read_file = read_file
        self._fetch = fetch
        self._decode = decode
        self._encode = encode
        self._write = write

    def _acquire_local(self, job: LocalFileJob) -> tuple[bytes, str]:
        try:
            data = self._read_file(job.path)
        except OSError as e:
            raise JobFetchError(job.identity, f"open file: {e}", e) from e
        return data, job.path.stem

    def _acquire_remote(self, job: RemoteUrlJob) -> tuple[bytes, str]:
        try:
            data, status = self._fetch(job.url)
        except NetworkError as e:
            cause = e.cause if e.cause is not None else e
            raise JobFetchError(job.identity, f"download: {cause}", e) from e
        if status < 200 or status > 299:
            raise JobFetchError(job.identity, f"invalid response status {status}")
        return data, url_to_basename(job.url)

    def acquire(self, job: Job) -> tuple[bytes, str]:
        """Get source bytes and the output base name for a job."""
        if isinstance(job, LocalFileJob):
            return self._acquire_local(job)
        if isinstance(job, RemoteUrlJob):
            return self._acquire_remote(job)
        raise TypeError(f"Unsupported job type: {type(job).__name__}")

    def process(self, job: Job) -> Path:
        """Convert a job and return the written output path.

        Raises:
            JobError: On any stage failure
        """
        data, base_name = self.acquire(job)

        try:
            img, source_format = self._decode(data)
        except DecodeError as e:
            raise JobDecodeError(job.identity, str(e), e) from e

        try:
            output_path = self.claims.claim(
                self.output_dir, base_name, OUTPUT_EXTENSION
            )
            encode_options = effective_encode_options(self.options, source_format)
            try:
                payload = self._encode(img, encode_options)
            except EncodeError as e:
                raise JobEncodeError(job.identity, str(e), e) from e
        finally:
            img.close()

        try:
            self._write(output_path, payload)
        except OSError as e:
            raise JobWriteError(job.identity, f"{output_path}: {e}", e) from e

        return output_path


class BatchRunner:
    """Fixed-size worker pool plus orchestrator for one batch."""

    def __init__(
        self,
        options: ConversionOptions,
        output_dir: Path,
        workers: int = DEFAULT_WORKERS,
        aggregator: OutcomeAggregator | None = None,
        processor: JobProcessor | None = None,
        on_progress: ProgressFn | None = None,
    ) -> None:
        """
        Initialize batch runner.

        Args:
            options: Encoder options shared by all workers
            output_dir: Directory receiving the WebP files
            workers: Pool size; values below 1 are clamped to 1
            aggregator: Outcome counters and error log (a fresh one by default)
            processor: Job processor (built from options/output_dir by default)
            on_progress: Called with 1 after every finished job
        """
        self.options = options
        self.output_dir = Path(output_dir)
        if workers < 1:
            logger.debug(f"Worker count {workers} clamped to 1")
        self.workers = max(1, int(workers))
        self.aggregator = aggregator or OutcomeAggregator()
        # Claimed output names share the aggregator's mutex
        self.processor = processor or JobProcessor(
            options,
            self.output_dir,
            claims=OutputPathClaims(lock=self.aggregator.lock),
        )
        self.on_progress = on_progress

    def _run_job(self, job: Job) -> JobOutcome:
        outcome = JobOutcome(
            job=job,
            status=JobStatus.PROCESSING,
            started_at=datetime.now().astimezone().isoformat(),
        )
        start = time.perf_counter()
        try:
            outcome.output_path = self.processor.process(job)
        except Exception as e:
            outcome.status = JobStatus.FAILED
            outcome.error = self.aggregator.record_failure(job.identity, e)
            if not isinstance(e, JobError):
                logger.opt(exception=e).debug(f"Unexpected error for {job.identity}")
        else:
            outcome.status = JobStatus.SUCCEEDED
            self.aggregator.record_success()
            logger.debug(f"Converted {job.identity} -> {outcome.output_path}")
        finally:
            outcome.duration = time.perf_counter() - start
        return outcome

    def _worker(self, channel: queue.Queue, results: list[JobOutcome]) -> None:
        while True:
            item = channel.get()
            if item is _CLOSED:
                return
            # Workers exit only on _CLOSED
            try:
                results.append(self._run_job(item))
            except Exception as e:
                logger.opt(exception=e).error(
                    f"Worker error while recording {item.identity}"
                )
            if self.on_progress is not None:
                try:
                    self.on_progress(1)
                except Exception as e:
                    logger.warning(f"Progress update failed: {e}")

    def run(self, jobs: Iterable[Job]) -> BatchSummary:
        """Process every job and wait for the pool to drain.

        Jobs are fed into a queue bounded by the pool size, so the caller
        blocks while all workers are busy.
        """
        channel: queue.Queue = queue.Queue(maxsize=self.workers)
        per_worker: list[list[JobOutcome]] = [[] for _ in range(self.workers)]
        threads = [
            threading.Thread(
                target=self._worker,
                args=(channel, per_worker[i]),
                name=f"imgopt-worker-{i}",
            )
            for i in range(self.workers)
        ]
        for thread in threads:
            thread.start()

        submitted = 0
        try:
            for job in jobs:
                channel.put(job)
                submitted += 1
        finally:
            for _ in threads:
                channel.put(_CLOSED)
            for thread in threads:
                thread.join()

        counters: OutcomeCounters = self.aggregator.snapshot()
        outcomes = [outcome for results in per_worker for outcome in results]
        logger.debug(
            f"Batch drained: {submitted} submitted, "
            f"{counters.converted} converted, {counters.failed} failed"
        )
        error_log = self.aggregator.error_log
        return BatchSummary(
            converted=counters.converted,
            failed=counters.failed,
            output_dir=self.output_dir,
            error_log=error_log.path if error_log is not None else None,
            outcomes=outcomes,
        )
