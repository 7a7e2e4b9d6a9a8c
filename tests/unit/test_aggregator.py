"""Tests for outcome accounting and the error log."""

from __future__ import annotations

import re
import threading
from pathlib import Path

import pytest
from loguru import logger

from imgopt.aggregator import (
    ErrorLog,
    OutcomeAggregator,
    OutcomeCounters,
    format_failure,
)
from imgopt.exceptions import JobDecodeError, OutputSetupError

LINE_PATTERN = re.compile(r"^\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2} .+$")


class TestErrorLog:
    def test_open_creates_file(self, tmp_path: Path) -> None:
        path = tmp_path / "webp-errors.log"
        error_log = ErrorLog.open(path)
        try:
            assert path.exists()
            assert path.read_text() == ""
        finally:
            error_log.close()

    def test_lines_have_timestamp_and_message(self, tmp_path: Path) -> None:
        path = tmp_path / "webp-errors.log"
        with ErrorLog.open(path) as error_log:
            error_log.write("decode /a.png: bad data")
            error_log.write("fetch http://x/1.png: invalid response status 404")

        lines = path.read_text().splitlines()
        assert len(lines) == 2
        assert all(LINE_PATTERN.match(line) for line in lines)
        assert lines[0].endswith("decode /a.png: bad data")

    def test_only_own_entries_are_written(self, tmp_path: Path) -> None:
        first = ErrorLog.open(tmp_path / "one.log")
        second = ErrorLog.open(tmp_path / "two.log")
        try:
            first.write("first only")
            logger.error("unrelated application error")
        finally:
            first.close()
            second.close()

        assert "first only" in (tmp_path / "one.log").read_text()
        assert "unrelated" not in (tmp_path / "one.log").read_text()
        assert (tmp_path / "two.log").read_text() == ""

    def test_write_after_close_raises(self, tmp_path: Path) -> None:
        error_log = ErrorLog.open(tmp_path / "e.log")
        error_log.close()
        assert not error_log.is_open
        with pytest.raises(RuntimeError):
            error_log.write("late")

    def test_close_is_idempotent(self, tmp_path: Path) -> None:
        error_log = ErrorLog.open(tmp_path / "e.log")
        error_log.close()
        error_log.close()

    def test_unwritable_location_raises_setup_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        with pytest.raises(OutputSetupError):
            ErrorLog.open(blocker / "webp-errors.log")


class TestFormatFailure:
    def test_job_error_used_verbatim(self) -> None:
        err = JobDecodeError("/a.png", "cannot identify image file")
        assert format_failure("/a.png", err) == "decode /a.png: cannot identify image file"

    def test_unexpected_error_includes_identity_and_type(self) -> None:
        message = format_failure("http://x/1.png", RuntimeError("boom"))
        assert message == "process http://x/1.png: RuntimeError: boom"


class TestOutcomeAggregator:
    def test_initial_snapshot(self) -> None:
        assert OutcomeAggregator().snapshot() == OutcomeCounters(0, 0)

    def test_counts(self) -> None:
        aggregator = OutcomeAggregator()
        aggregator.record_success()
        aggregator.record_success()
        aggregator.record_failure("x", ValueError("bad"))

        snapshot = aggregator.snapshot()

        assert snapshot.converted == 2
        assert snapshot.failed == 1
        assert snapshot.total == 3

    def test_snapshot_is_immutable_copy(self) -> None:
        aggregator = OutcomeAggregator()
        snapshot = aggregator.snapshot()
        aggregator.record_success()
        assert snapshot.converted == 0

    def test_failure_counted_when_log_write_fails(self, tmp_path: Path) -> None:
        error_log = ErrorLog.open(tmp_path / "e.log")
        error_log.close()
        aggregator = OutcomeAggregator(error_log)

        message = aggregator.record_failure("/a.png", JobDecodeError("/a.png", "bad"))

        assert message == "decode /a.png: bad"
        assert aggregator.snapshot() == OutcomeCounters(converted=0, failed=1)

    def test_failure_returns_logged_message(self, tmp_path: Path) -> None:
        with ErrorLog.open(tmp_path / "e.log") as error_log:
            aggregator = OutcomeAggregator(error_log)
            message = aggregator.record_failure("/a.png", JobDecodeError("/a.png", "bad"))

        assert message == "decode /a.png: bad"
        assert (tmp_path / "e.log").read_text().strip().endswith(message)

    def test_concurrent_updates_no_lost_counts(self, tmp_path: Path) -> None:
        """Many threads hammering the counters lose no updates and tear no lines."""
        threads_count = 16
        per_thread = 50
        barrier = threading.Barrier(threads_count)

        with ErrorLog.open(tmp_path / "e.log") as error_log:
            aggregator = OutcomeAggregator(error_log)

            def hammer(worker_id: int) -> None:
                barrier.wait()
                for i in range(per_thread):
                    if i % 2:
                        aggregator.record_success()
                    else:
                        aggregator.record_failure(
                            f"job-{worker_id}-{i}", ValueError("x" * 200)
                        )

            threads = [
                threading.Thread(target=hammer, args=(n,)) for n in range(threads_count)
            ]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

        snapshot = aggregator.snapshot()
        assert snapshot.total == threads_count * per_thread
        assert snapshot.converted == threads_count * per_thread // 2
        assert snapshot.failed == threads_count * per_thread // 2

        lines = (tmp_path / "e.log").read_text().splitlines()
        assert len(lines) == snapshot.failed
        assert all(LINE_PATTERN.match(line) for line in lines)
        assert all(line.endswith("x" * 200) for line in lines)
