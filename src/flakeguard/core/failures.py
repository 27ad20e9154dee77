"""Failure and performance records accumulated over a run."""

import threading
import time
import traceback
from collections.abc import Callable
from dataclasses import dataclass, field

from flakeguard.core.encoding.ndjson import format_timestamp
from flakeguard.core.log_store import LogStore

RECENT_FAILURES = 10

# Set on errors once recorded; recording the same error object again is a no-op.
_RECORDED_MARK = "__flakeguard_recorded__"


@dataclass(frozen=True)
class FailureRecord:
    """One recorded test failure.

    Attributes:
        timestamp: Unix timestamp in seconds.
        test_name: Test that failed.
        error: Error message.
        step: Step that was running, if known.
        stack: Formatted traceback, if the error carried one.
        screenshot: Path of a captured failure image, if any.
    """

    timestamp: float
    test_name: str
    error: str
    step: str | None = None
    stack: str | None = None
    screenshot: str | None = None


@dataclass(frozen=True)
class FailureStats:
    total: int
    by_test: dict[str, int] = field(default_factory=dict)
    recent: list[FailureRecord] = field(default_factory=list)


class FailureRecorder:
    """Collects test failures and renders a Markdown report.

    Each recorded failure is also logged at error level, tagged with the
    test name. An error object is recorded at most once, so a failure already
    reported by ResilientPage is not counted again when the test fails with it.
    """

    def __init__(self, log_store: LogStore, clock: Callable[[], float] = time.time) -> None:
        self._log = log_store
        self._clock = clock
        self._records: list[FailureRecord] = []
        self._lock = threading.Lock()

    def record(
        self,
        error: BaseException,
        test_name: str,
        step: str | None = None,
        screenshot: str | None = None,
    ) -> FailureRecord | None:
        """Record error against test_name.

        Returns:
            The new record, or None if this error was already recorded.
        """
        with self._lock:
            if getattr(error, _RECORDED_MARK, False):
                return None
            setattr(error, _RECORDED_MARK, True)
        stack = None
        if error.__traceback__ is not None:
            stack = "".join(traceback.format_exception(error))
        record = FailureRecord(
            timestamp=self._clock(),
            test_name=test_name,
            error=str(error) or type(error).__name__,
            step=step,
            stack=stack,
            screenshot=screenshot,
        )
        with self._lock:
            self._records.append(record)
            number = len(self._records)
        self._log.failure(
            f"#{number} in step {step or 'unknown'}: {record.error}",
            tag=test_name,
            context={"step": step, "screenshot": screenshot, "error_type": type(error).__name__},
        )
        return record

    @property
    def records(self) -> list[FailureRecord]:
        with self._lock:
            return list(self._records)

    def stats(self) -> FailureStats:
        records = self.records
        by_test: dict[str, int] = {}
        for record in records:
            by_test[record.test_name] = by_test.get(record.test_name, 0) + 1
        return FailureStats(
            total=len(records), by_test=by_test, recent=records[-RECENT_FAILURES:]
        )

    def report(self) -> str:
        """Render failure statistics as a Markdown document."""
        stats = self.stats()
        lines = [
            "# Error Report",
            f"Generated: {format_timestamp(self._clock())}",
            "",
            "## Summary",
            f"- Total Errors: {stats.total}",
            f"- Tests with Errors: {len(stats.by_test)}",
            "",
            "## Errors by Test",
        ]
        lines += [f"- {test}: {count} errors" for test, count in stats.by_test.items()]
        lines += ["", "## Recent Errors"]
        lines += [
            f"- {format_timestamp(r.timestamp)} | {r.test_name}: {r.error}" for r in stats.recent
        ]
        return "\n".join(lines) + "\n"

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


@dataclass(frozen=True)
class PerformanceRecord:
    test_name: str
    duration: float
    steps: int
    timestamp: float


@dataclass(frozen=True)
class PerformanceStats:
    total_tests: int
    average_duration: float = 0.0
    slowest_test: str = ""
    fastest_test: str = ""
    average_steps: float = 0.0


class PerformanceMonitor:
    """Keeps per-test durations (seconds) and step counts."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._records: list[PerformanceRecord] = []
        self._lock = threading.Lock()

    def record(self, test_name: str, duration: float, steps: int) -> PerformanceRecord:
        record = PerformanceRecord(test_name, duration, steps, self._clock())
        with self._lock:
            self._records.append(record)
        return record

    def stats(self) -> PerformanceStats:
        with self._lock:
            records = list(self._records)
        if not records:
            return PerformanceStats(total_tests=0)
        slowest = max(records, key=lambda r: r.duration)
        fastest = min(records, key=lambda r: r.duration)
        return PerformanceStats(
            total_tests=len(records),
            average_duration=sum(r.duration for r in records) / len(records),
            slowest_test=f"{slowest.test_name} ({round(slowest.duration * 1000)}ms)",
            fastest_test=f"{fastest.test_name} ({round(fastest.duration * 1000)}ms)",
            average_steps=sum(r.steps for r in records) / len(records),
        )

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
