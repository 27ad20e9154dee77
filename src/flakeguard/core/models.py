"""Core domain models for resilient test-run telemetry."""

import logging
from dataclasses import asdict, dataclass, field
from enum import IntEnum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

JSONValue = Any


class LogLevel(IntEnum):
    """Ordered log level: DEBUG < INFO < WARN < ERROR."""

    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40

    @property
    def label(self) -> str:
        """Lowercase name used in exports ("debug", "info", "warn", "error")."""
        return self.name.lower()

    @property
    def stdlib_level(self) -> int:
        """Matching level number of the standard logging module."""
        return _STDLIB_LEVELS[self]

    @classmethod
    def parse(cls, value: "str | int | LogLevel") -> "LogLevel":
        """Coerce a level name, number or member into a LogLevel.

        Names are case-insensitive; "warning" is accepted as an alias of WARN.

        Raises:
            ValueError: If the value names no known level.
        """
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, int):
            return cls(value)
        name = value.strip().upper()
        if name == "WARNING":
            name = "WARN"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown log level: {value!r}") from None


_STDLIB_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class LogEntry:
    """A structured log entry.

    Attributes:
        timestamp: Unix timestamp in seconds.
        level: Severity of the entry.
        message: The log message.
        context: Optional structured payload attached by the caller.
        tag: Optional free-text label, usually the name of the test.
    """

    timestamp: float
    level: LogLevel
    message: str
    context: JSONValue = None
    tag: str | None = None


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff configuration.

    Delays are in seconds. Attempts are counted from 1.

    Attributes:
        max_attempts: Total number of attempts, including the first one.
        base_delay: Delay after the first failed attempt.
        max_delay: Upper bound for any single delay.
        multiplier: Growth factor applied per additional failed attempt.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")

    def to_dict(self) -> dict[str, float]:
        """Serialize policy to dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RetryPolicy":
        """Create policy from dict."""
        return cls(**data)


@dataclass(frozen=True)
class Success(Generic[T]):
    """Outcome of an action that eventually returned a value."""

    value: T
    attempts: int

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Outcome of an action whose every attempt raised."""

    error: BaseException
    attempts: int

    @property
    def ok(self) -> bool:
        return False


ExecutionResult = Success[T] | Failure


@dataclass(frozen=True)
class LogSummary:
    """Derived counts over a set of log entries.

    Attributes:
        total: Number of entries.
        by_level: Entry count per level label.
        by_tag: Entry count per tag; untagged entries are not counted here.
    """

    total: int
    by_level: dict[str, int] = field(default_factory=dict)
    by_tag: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"total": self.total, "byLevel": self.by_level, "byTag": self.by_tag}


@dataclass(frozen=True)
class DataSummary:
    """Derived counts over the keyed data store.

    Attributes:
        total_entries: Number of stored keys.
        entries_by_type: Count of stored values per JSON type name.
        memory_usage: Length of the JSON serialization of all entries.
    """

    total_entries: int
    entries_by_type: dict[str, int] = field(default_factory=dict)
    memory_usage: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalEntries": self.total_entries,
            "entriesByType": self.entries_by_type,
            "memoryUsage": self.memory_usage,
        }
