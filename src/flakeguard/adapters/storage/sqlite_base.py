"""SQLite connection handling for the log storage adapter.

Worker processes of one pytest run may write to the same database file, so
file connections wait up to BUSY_TIMEOUT seconds for a lock and the file is
switched to WAL mode on first use. An in-memory database lives only as long
as its connection, so SyncConnectionManager holds one open for :memory:
until closed.
"""

import asyncio
import json
import sqlite3
import threading
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

import aiosqlite

MEMORY = ":memory:"

# Seconds a connection waits on another process's write lock.
BUSY_TIMEOUT = 30.0

_WAL = "PRAGMA journal_mode=WAL"


def _safe_json_loads(data: str | None, default: Any = None) -> Any:
    """Decode a stored JSON column; NULL or corrupt text yields default."""
    if data is None:
        return default
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        return default


class _Manager:
    def __init__(self, db_path: str, schema: str) -> None:
        self._db_path = db_path
        self._schema = schema
        self._ready = False

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def in_memory(self) -> bool:
        return self._db_path == MEMORY


class AsyncConnectionManager(_Manager):
    """Hands out aiosqlite connections to a database file.

    The schema and WAL mode are applied on first use. A :memory: database
    would be private to a single aiosqlite connection, so it is rejected;
    SQLiteLogStorage serves :memory: through SyncConnectionManager alone.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        if db_path == MEMORY:
            raise ValueError("AsyncConnectionManager needs a database file, not :memory:")
        super().__init__(db_path, schema)
        self._setup_lock: asyncio.Lock | None = None

    async def _setup(self) -> None:
        # Created on first use so it binds to the running loop.
        if self._setup_lock is None:
            self._setup_lock = asyncio.Lock()
        async with self._setup_lock:
            if self._ready:
                return
            async with aiosqlite.connect(self._db_path, timeout=BUSY_TIMEOUT) as conn:
                await conn.execute(_WAL)
                await conn.executescript(self._schema)
            self._ready = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a fresh connection, closed on exit."""
        if not self._ready:
            await self._setup()
        async with aiosqlite.connect(self._db_path, timeout=BUSY_TIMEOUT) as conn:
            yield conn


class SyncConnectionManager(_Manager):
    """sqlite3 counterpart of AsyncConnectionManager.

    The :memory: connection is opened with ``check_same_thread=False`` and
    lent to one thread at a time under a re-entrant lock.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        super().__init__(db_path, schema)
        self._guard = threading.RLock()
        self._memory_conn: sqlite3.Connection | None = None

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(
            self._db_path, timeout=BUSY_TIMEOUT, check_same_thread=not self.in_memory
        )

    def _setup(self) -> None:
        with self._guard:
            if self._ready:
                return
            conn = self._connect()
            if not self.in_memory:
                conn.execute(_WAL)
            conn.executescript(self._schema)
            if self.in_memory:
                self._memory_conn = conn
            else:
                conn.close()
            self._ready = True

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        if not self._ready:
            self._setup()
        if not self.in_memory:
            conn = self._connect()
            try:
                yield conn
            finally:
                conn.close()
            return
        with self._guard:
            if self._memory_conn is None:
                raise RuntimeError("in-memory database was closed during use")
            yield self._memory_conn

    def close(self) -> None:
        with self._guard:
            if self._memory_conn is not None:
                self._memory_conn.close()
                self._memory_conn = None
            self._ready = False
