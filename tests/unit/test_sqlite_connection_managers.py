"""Tests for SQLite connection manager classes."""

import threading

import pytest

from flakeguard.adapters.storage.sqlite_base import (
    MEMORY,
    AsyncConnectionManager,
    SyncConnectionManager,
    _safe_json_loads,
)

pytestmark = [
    pytest.mark.tier(1),
    pytest.mark.tra("Adapter.SQLiteStorage.ConnectionManager"),
]

ITEMS_SCHEMA = """
CREATE TABLE IF NOT EXISTS items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL
);
"""


class TestSafeJsonLoads:
    """Tests for _safe_json_loads."""

    def test_parses_json(self) -> None:
        assert _safe_json_loads('{"a": 1}') == {"a": 1}

    def test_none_and_garbage_fall_back_to_default(self) -> None:
        assert _safe_json_loads(None, default={}) == {}
        assert _safe_json_loads("{oops", default="fallback") == "fallback"


class TestAsyncConnectionManager:
    """Tests for AsyncConnectionManager."""

    @pytest.mark.storage
    async def test_file_database_persists_between_connections(self, tmp_path) -> None:
        manager = AsyncConnectionManager(str(tmp_path / "items.db"), ITEMS_SCHEMA)

        async with manager.connection() as conn:
            await conn.execute("INSERT INTO items (name) VALUES (?)", ("first",))
            await conn.commit()
        async with manager.connection() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM items")
            row = await cursor.fetchone()
            assert row[0] == 1

    @pytest.mark.storage
    async def test_sees_rows_written_by_sync_manager(self, tmp_path) -> None:
        path = str(tmp_path / "items.db")
        with SyncConnectionManager(path, ITEMS_SCHEMA).connection() as conn:
            conn.execute("INSERT INTO items (name) VALUES (?)", ("sync_item",))
            conn.commit()

        async with AsyncConnectionManager(path, ITEMS_SCHEMA).connection() as conn:
            cursor = await conn.execute("SELECT name FROM items")
            assert [row[0] async for row in cursor] == ["sync_item"]

    def test_rejects_memory_database(self) -> None:
        with pytest.raises(ValueError, match="memory"):
            AsyncConnectionManager(MEMORY, ITEMS_SCHEMA)


class TestSyncConnectionManager:
    """Tests for SyncConnectionManager."""

    @pytest.mark.storage
    def test_initializes_schema_in_file(self, tmp_path) -> None:
        manager = SyncConnectionManager(str(tmp_path / "items.db"), ITEMS_SCHEMA)

        with manager.connection() as conn:
            conn.execute("INSERT INTO items (name) VALUES (?)", ("test",))
            conn.commit()
        with manager.connection() as conn:
            assert conn.execute("SELECT name FROM items").fetchall() == [("test",)]

    @pytest.mark.storage
    def test_file_database_uses_wal_journal(self, tmp_path) -> None:
        manager = SyncConnectionManager(str(tmp_path / "items.db"), ITEMS_SCHEMA)

        with manager.connection() as conn:
            assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"

    @pytest.mark.storage
    def test_close_resets_memory_database(self) -> None:
        manager = SyncConnectionManager(MEMORY, ITEMS_SCHEMA)
        with manager.connection() as conn:
            conn.execute("INSERT INTO items (name) VALUES (?)", ("gone",))
            conn.commit()
        manager.close()

        with manager.connection() as conn:
            assert conn.execute("SELECT COUNT(*) FROM items").fetchone()[0] == 0
        manager.close()

    @pytest.mark.storage
    def test_memory_connection_is_shared_across_threads(self) -> None:
        manager = SyncConnectionManager(MEMORY, ITEMS_SCHEMA)

        def insert(n: int) -> None:
            with manager.connection() as conn:
                conn.execute("INSERT INTO items (name) VALUES (?)", (f"item{n}",))
                conn.commit()

        threads = [threading.Thread(target=insert, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        with manager.connection() as conn:
            assert conn.execute("SELECT COUNT(*) FROM items").fetchone()[0] == 4
        manager.close()
