"""Per-test step tracking."""

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from flakeguard.core.log_store import LogStore


@dataclass
class StepRecord:
    """A named step of a test; duration is set once the step completes."""

    step: str
    started_at: float
    duration: float | None = None


class RunContext:
    """Tracks the steps of one test and narrates them to a LogStore.

    Every entry it writes is tagged with the test name.

    Args:
        test_name: Name used as the log tag.
        log_store: Destination for step and timing entries.
        clock: Monotonic clock in seconds used for durations.
    """

    def __init__(
        self,
        test_name: str,
        log_store: LogStore,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.test_name = test_name
        self._log = log_store
        self._clock = clock
        self._started_at = clock()
        self._steps: list[StepRecord] = []
        self._log.info(f"Starting test: {test_name}", tag=test_name)

    def add_step(self, step: str) -> StepRecord:
        record = StepRecord(step=step, started_at=self._clock())
        self._steps.append(record)
        self._log.step(step, tag=self.test_name)
        return record

    def complete_step(self, step: str) -> float | None:
        """Record the duration of the first open step with this name.

        Returns:
            Duration in seconds, or None if no such step is open.
        """
        for record in self._steps:
            if record.step == step and record.duration is None:
                record.duration = self._clock() - record.started_at
                self._log.performance(step, record.duration, tag=self.test_name)
                return record.duration
        return None

    @contextmanager
    def timed_step(self, step: str) -> Iterator[StepRecord]:
        """Context manager that opens a step and completes it on exit.

        The step is completed even if the body raises.
        """
        record = self.add_step(step)
        try:
            yield record
        finally:
            self.complete_step(step)

    @property
    def steps(self) -> list[StepRecord]:
        return list(self._steps)

    def duration(self) -> float:
        """Seconds elapsed since the context was created."""
        return self._clock() - self._started_at

    def complete(self) -> float:
        """Log the test summary and return its total duration."""
        duration = self.duration()
        self._log.info(
            f"Test completed: {self.test_name} ({round(duration * 1000)}ms)",
            {"duration_ms": round(duration * 1000), "steps": len(self._steps)},
            self.test_name,
        )
        return duration
