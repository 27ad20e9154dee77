"""Shared test fixtures for all test modules."""

from pathlib import Path

import pytest

from flakeguard.core.data_store import DataStore
from flakeguard.core.log_store import LogStore
from flakeguard.core.models import LogLevel, RetryPolicy


class RecordingSleep:
    """Async sleep double that records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def log_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for log storage tests."""
    return str(tmp_path / "logs.db")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def log_store(clock: FakeClock) -> LogStore:
    """Debug-level store so every executor entry is kept."""
    return LogStore(level=LogLevel.DEBUG, clock=clock)


@pytest.fixture
def data_store(clock: FakeClock) -> DataStore:
    return DataStore(clock=clock)


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Three attempts with 0.1s, 0.2s delays."""
    return RetryPolicy(max_attempts=3, base_delay=0.1, max_delay=1.0, multiplier=2.0)
