"""SQLite-backed durable key-value store.

Persists every cache entry, namespace index, and module setting to one
table at ``data/nsaide_kv.db`` using ``aiosqlite`` for async I/O.  Each
value is a small JSON string, so one connection per operation is cheap.
"""

from __future__ import annotations

from pathlib import Path

import aiosqlite
import structlog

from nsaide.interfaces.kv_store import IKeyValueStore
from nsaide.utils.logging import get_logger

_DEFAULT_DB_PATH = Path("data/nsaide_kv.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS {table} (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_UPSERT_SQL = """\
INSERT INTO {table} (key, value)
VALUES (?, ?)
ON CONFLICT(key)
DO UPDATE SET value      = excluded.value,
              updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_SELECT_SQL = "SELECT value FROM {table} WHERE key = ?;"

_DELETE_SQL = "DELETE FROM {table} WHERE key = ?;"

_COUNT_SQL = "SELECT COUNT(*) FROM {table};"


class SQLiteKeyValueStore(IKeyValueStore):
    """Durable :class:`IKeyValueStore` on a single SQLite table.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Parent directories are created
        by :meth:`initialize`.
    table_name:
        Table to use, so several stores can share one database file.
    """

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        table_name: str = "kv_store",
    ) -> None:
        self._db_path = Path(db_path)
        self._table = table_name
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def initialize(self) -> None:
        """Create the table if it does not exist.

        Must be awaited once before use (typically at startup).
        """
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute("PRAGMA journal_mode=WAL")
            await db.execute(_CREATE_TABLE_SQL.format(table=self._table))
            await db.commit()
        self._logger.info(
            "kv_store_initialized",
            db_path=str(self._db_path),
            table=self._table,
        )

    async def get(self, key: str) -> str | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_SELECT_SQL.format(table=self._table), (key,))
            row = await cursor.fetchone()
        if row is None or not row[0]:
            return None
        return row[0]

    async def set(self, key: str, value: str) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            if value == "":
                await db.execute(_DELETE_SQL.format(table=self._table), (key,))
            else:
                await db.execute(_UPSERT_SQL.format(table=self._table), (key, value))
            await db.commit()

    async def count(self) -> int:
        """Return the number of stored keys."""
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_COUNT_SQL.format(table=self._table))
            row = await cursor.fetchone()
        return row[0] if row else 0

    def get_provider_name(self) -> str:
        return f"sqlite_kv_store:{self._table}"
