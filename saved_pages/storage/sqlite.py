"""SQLiteKVStore: default persistent backend using stdlib sqlite3."""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..types import StorageUnavailable
from .helpers import dt_to_str

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value_json TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class SQLiteKVStore:
    """Key-value pairs in a single ``kv`` table, values stored as JSON text.

    Queries run in a worker thread via ``asyncio.to_thread``; a lock keeps
    the shared connection single-user.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(SCHEMA_SQL)
            self._conn.commit()
        return self._conn

    def _get_sync(self, key: str) -> Any | None:
        with self._lock:
            row = self._get_conn().execute(
                "SELECT value_json FROM kv WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        return json.loads(row["value_json"])

    def _set_sync(self, key: str, value: Any) -> None:
        with self._lock:
            conn = self._get_conn()
            conn.execute(
                """INSERT INTO kv (key, value_json, updated_at) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                       value_json = excluded.value_json,
                       updated_at = excluded.updated_at""",
                (key, json.dumps(value, default=str), dt_to_str(datetime.now(timezone.utc))),
            )
            conn.commit()

    def _remove_sync(self, key: str) -> None:
        with self._lock:
            conn = self._get_conn()
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()

    def _clear_sync(self) -> None:
        with self._lock:
            conn = self._get_conn()
            conn.execute("DELETE FROM kv")
            conn.commit()

    async def _run(self, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except (sqlite3.Error, OSError, json.JSONDecodeError) as e:
            raise StorageUnavailable(f"{self.db_path}: {e}") from e

    async def get(self, key: str) -> Any | None:
        return await self._run(self._get_sync, key)

    async def set(self, key: str, value: Any) -> None:
        await self._run(self._set_sync, key, value)

    async def remove(self, key: str) -> None:
        await self._run(self._remove_sync, key)

    async def clear(self) -> None:
        await self._run(self._clear_sync)

    def keys(self) -> list[str]:
        with self._lock:
            rows = self._get_conn().execute("SELECT key FROM kv ORDER BY key").fetchall()
        return [r["key"] for r in rows]

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None
