"""Process-wide structured log store for test runs.

Entries below the configured minimum level are dropped: neither stored nor
echoed. Accepted entries are appended to a storage backend under a single
lock and mirrored to the standard ``logging`` logger ``flakeguard.run``.
"""

import logging
import threading
import time
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

from flakeguard.core.encoding.export import (
    encode_log_document,
    summarize_logs,
    write_document,
    write_text,
)
from flakeguard.core.encoding.ndjson import encode_logs
from flakeguard.core.memory import InMemoryLogStorage
from flakeguard.core.models import LogEntry, LogLevel, LogSummary
from flakeguard.core.ports import AsyncLogStoragePort, LogStoragePort

ECHO_LOGGER_NAME = "flakeguard.run"

# Marks records produced by the echo so LogStoreHandler can skip them.
ECHO_MARKER = "flakeguard_echo"

_NDJSON_SUFFIXES = frozenset({".ndjson", ".jsonl"})


class LogQuery:
    """Lazy, restartable view over the entries of a LogStore.

    Each iteration snapshots the store and yields matching entries in
    insertion order, so iterating twice reflects appends made in between.
    """

    def __init__(
        self,
        store: "LogStore",
        level: LogLevel | None = None,
        tag: str | None = None,
    ) -> None:
        self._store = store
        self._level = level
        self._tag = tag

    def __iter__(self) -> Iterator[LogEntry]:
        for entry in self._store.entries():
            if self._level is not None and entry.level is not self._level:
                continue
            if self._tag is not None and entry.tag != self._tag:
                continue
            yield entry

    def __repr__(self) -> str:
        return f"LogQuery(level={self._level!r}, tag={self._tag!r})"


class LogStore:
    """Append-only, level-filtered log of a test run.

    Example:
        ```python
        store = LogStore(level="warn")
        store.info("ignored")
        store.error("Login button never appeared", tag="test_login")
        [e.message for e in store.query(tag="test_login")]
        ```

    Args:
        storage: Backend implementing LogStoragePort. Defaults to an
            unbounded in-memory list.
        level: Minimum level that will be stored.
        clock: Source of entry timestamps (unix seconds).
        echo: Mirror accepted entries to the ``flakeguard.run`` logger.
    """

    def __init__(
        self,
        storage: LogStoragePort | None = None,
        level: LogLevel | str = LogLevel.INFO,
        clock: Callable[[], float] = time.time,
        echo: bool = True,
    ) -> None:
        self._storage: LogStoragePort = storage if storage is not None else InMemoryLogStorage()
        self._level = LogLevel.parse(level)
        self._clock = clock
        self._echo = logging.getLogger(ECHO_LOGGER_NAME) if echo else None
        self._lock = threading.Lock()
        self._async_storage: AsyncLogStoragePort | None = (
            self._storage if isinstance(self._storage, AsyncLogStoragePort) else None
        )

    @property
    def storage(self) -> LogStoragePort:
        return self._storage

    @property
    def level(self) -> LogLevel:
        return self._level

    def set_level(self, level: LogLevel | str) -> None:
        """Set the minimum level that will be stored."""
        parsed = LogLevel.parse(level)
        with self._lock:
            self._level = parsed

    def is_enabled_for(self, level: LogLevel | str) -> bool:
        return LogLevel.parse(level) >= self._level

    def append(
        self,
        level: LogLevel | str,
        message: str,
        context: Any = None,
        tag: str | None = None,
    ) -> LogEntry | None:
        """Append an entry if its level passes the minimum.

        Returns:
            The stored entry, or None when the level was filtered out.
        """
        level = LogLevel.parse(level)
        with self._lock:
            entry = self._accept(level, message, context, tag)
            if entry is None:
                return None
            self._storage.write(entry)
        self._mirror(entry)
        return entry

    async def append_async(
        self,
        level: LogLevel | str,
        message: str,
        context: Any = None,
        tag: str | None = None,
    ) -> LogEntry | None:
        """Append from event-loop code.

        A backend implementing AsyncLogStoragePort is written through
        ``write_async``, outside the lock, so the loop keeps running while the
        entry is persisted. Other backends are written as by ``append``.
        """
        async_storage = self._async_storage
        if async_storage is None:
            return self.append(level, message, context, tag)
        level = LogLevel.parse(level)
        with self._lock:
            entry = self._accept(level, message, context, tag)
        if entry is None:
            return None
        await async_storage.write_async(entry)
        self._mirror(entry)
        return entry

    def _accept(
        self, level: LogLevel, message: str, context: Any, tag: str | None
    ) -> LogEntry | None:
        # Caller holds the lock.
        if level < self._level:
            return None
        return LogEntry(
            timestamp=self._clock(), level=level, message=message, context=context, tag=tag
        )

    def _mirror(self, entry: LogEntry) -> None:
        if self._echo is not None:
            self._echo.log(
                entry.level.stdlib_level,
                "%s%s",
                f"[{entry.tag}] " if entry.tag else "",
                entry.message,
                extra={ECHO_MARKER: True},
            )

    def debug(self, message: str, context: Any = None, tag: str | None = None) -> LogEntry | None:
        return self.append(LogLevel.DEBUG, message, context, tag)

    def info(self, message: str, context: Any = None, tag: str | None = None) -> LogEntry | None:
        return self.append(LogLevel.INFO, message, context, tag)

    def warn(self, message: str, context: Any = None, tag: str | None = None) -> LogEntry | None:
        return self.append(LogLevel.WARN, message, context, tag)

    def error(self, message: str, context: Any = None, tag: str | None = None) -> LogEntry | None:
        return self.append(LogLevel.ERROR, message, context, tag)

    # Formatted helpers for test narration.

    def step(self, step: str, tag: str | None = None, context: Any = None) -> LogEntry | None:
        """Log a test step at info level."""
        return self.info(f"Step: {step}", context, tag)

    def assertion(
        self, assertion: str, tag: str | None = None, context: Any = None
    ) -> LogEntry | None:
        """Log a passed assertion at info level."""
        return self.info(f"Assertion passed: {assertion}", context, tag)

    def failure(self, failure: str, tag: str | None = None, context: Any = None) -> LogEntry | None:
        """Log a test failure at error level."""
        return self.error(f"Failure: {failure}", context, tag)

    def performance(self, step: str, duration: float, tag: str | None = None) -> LogEntry | None:
        """Log how long a step took; duration is in seconds."""
        millis = round(duration * 1000)
        return self.info(
            f"Performance: {step} took {millis}ms",
            {"step": step, "duration_ms": millis},
            tag,
        )

    def network(
        self,
        method: str,
        url: str,
        status: int,
        duration: float,
        tag: str | None = None,
    ) -> LogEntry | None:
        """Log one request at debug level; duration is in seconds."""
        millis = round(duration * 1000)
        return self.debug(
            f"Network: {method} {url} - {status} ({millis}ms)",
            {"method": method, "url": url, "status": status, "duration_ms": millis},
            tag,
        )

    # Reading.

    def entries(self) -> list[LogEntry]:
        """Return a snapshot of all stored entries in insertion order."""
        with self._lock:
            return list(self._storage.read())

    def query(self, level: LogLevel | str | None = None, tag: str | None = None) -> LogQuery:
        """Return a lazy view of entries matching an exact level and/or tag."""
        parsed = None if level is None else LogLevel.parse(level)
        return LogQuery(self, level=parsed, tag=tag)

    def clear(self) -> None:
        """Remove every entry; the minimum level is kept."""
        with self._lock:
            self._storage.clear()

    def summary(self) -> LogSummary:
        return summarize_logs(self.entries())

    def __len__(self) -> int:
        with self._lock:
            return self._storage.count()

    def export(self, path: str | Path) -> Path:
        """Write all current entries and their summary to path.

        ``.ndjson`` and ``.jsonl`` destinations get one entry per line;
        anything else gets the JSON export document.

        Raises:
            ExportError: If the destination cannot be written.
        """
        entries = self.entries()
        destination = Path(path)
        if destination.suffix in _NDJSON_SUFFIXES:
            written = write_text(destination, encode_logs(entries))
        else:
            written = write_document(destination, encode_log_document(entries, self._clock()))
        self.info(f"Logs exported to: {written}")
        return written
