"""SQLite storage adapter for log entries."""

import sqlite3
from collections.abc import AsyncIterator
from typing import Any

import aiosqlite

from flakeguard.adapters.storage.sqlite_base import (
    MEMORY,
    AsyncConnectionManager,
    SyncConnectionManager,
    _safe_json_loads,
)
from flakeguard.core.encoding.ndjson import dumps
from flakeguard.core.models import LogEntry, LogLevel

_LOGS_SCHEMA = """
CREATE TABLE IF NOT EXISTS logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp REAL NOT NULL,
    level INTEGER NOT NULL,
    message TEXT NOT NULL,
    context TEXT,
    tag TEXT
);
CREATE INDEX IF NOT EXISTS idx_logs_level ON logs(level);
CREATE INDEX IF NOT EXISTS idx_logs_tag ON logs(tag);
"""

_INSERT_LOG = """
INSERT INTO logs (timestamp, level, message, context, tag) VALUES (?, ?, ?, ?, ?)
"""

_SELECT_LOGS = """
SELECT timestamp, level, message, context, tag
FROM logs
ORDER BY id ASC
"""

_COUNT_LOGS = "SELECT COUNT(*) FROM logs"

_CLEAR_LOGS = "DELETE FROM logs"


def _to_row(entry: LogEntry) -> tuple[Any, ...]:
    context = None if entry.context is None else dumps(entry.context)
    return (entry.timestamp, int(entry.level), entry.message, context, entry.tag)


def _from_row(row: sqlite3.Row | aiosqlite.Row | tuple[Any, ...]) -> LogEntry:
    return LogEntry(
        timestamp=row[0],
        level=LogLevel(row[1]),
        message=row[2],
        context=_safe_json_loads(row[3]),
        tag=row[4],
    )


class SQLiteLogStorage:
    """SQLite implementation of LogStoragePort and AsyncLogStoragePort.

    Lets parallel worker processes share one log file. Entries are read back
    in insertion order (by row id), matching the in-memory backend.

    The port methods (write, read, clear, count) use the standard sqlite3
    module. For a file database the ``*_async`` twins use aiosqlite, so
    LogStore.append_async persists entries without blocking the event loop.
    A :memory: database is a single sqlite3 connection without file I/O;
    its async twins run on that connection, so both sides see one log.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._sync_manager = SyncConnectionManager(db_path, _LOGS_SCHEMA)
        self._async_manager = (
            None if db_path == MEMORY else AsyncConnectionManager(db_path, _LOGS_SCHEMA)
        )

    @property
    def db_path(self) -> str:
        return self._db_path

    # --- Sync port methods using standard sqlite3 module ---

    def write(self, entry: LogEntry) -> None:
        with self._sync_manager.connection() as conn:
            conn.execute(_INSERT_LOG, _to_row(entry))
            conn.commit()

    def read(self) -> list[LogEntry]:
        """Read all entries in insertion order."""
        with self._sync_manager.connection() as conn:
            return [_from_row(row) for row in conn.execute(_SELECT_LOGS)]

    def clear(self) -> None:
        with self._sync_manager.connection() as conn:
            conn.execute(_CLEAR_LOGS)
            conn.commit()

    def count(self) -> int:
        with self._sync_manager.connection() as conn:
            row = conn.execute(_COUNT_LOGS).fetchone()
            return row[0] if row else 0

    # --- Async twins using aiosqlite ---

    async def write_async(self, entry: LogEntry) -> None:
        """Write a log entry without blocking the event loop."""
        if self._async_manager is None:
            self.write(entry)
            return
        async with self._async_manager.connection() as db:
            await db.execute(_INSERT_LOG, _to_row(entry))
            await db.commit()

    async def read_async(self) -> AsyncIterator[LogEntry]:
        """Stream all entries in insertion order."""
        if self._async_manager is None:
            for entry in self.read():
                yield entry
            return
        async with self._async_manager.connection() as db:
            async with db.execute(_SELECT_LOGS) as cursor:
                async for row in cursor:
                    yield _from_row(row)

    async def clear_async(self) -> None:
        if self._async_manager is None:
            self.clear()
            return
        async with self._async_manager.connection() as db:
            await db.execute(_CLEAR_LOGS)
            await db.commit()

    async def count_async(self) -> int:
        if self._async_manager is None:
            return self.count()
        async with self._async_manager.connection() as db:
            async with db.execute(_COUNT_LOGS) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    async def close(self) -> None:
        """Release the :memory: connection; file databases keep their data."""
        self.close_sync()

    def close_sync(self) -> None:
        self._sync_manager.close()
