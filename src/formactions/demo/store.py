# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""SQLite-backed todo store with an explicitly owned connection."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS todos (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""


@dataclass(frozen=True)
class Todo:
    id: int
    title: str


class TodoStore:
    """
    Owns one sqlite3 connection. Statements run on a worker thread and are
    serialised by a lock; callers await each call until it has committed.
    """

    def __init__(self, path: str = ":memory:"):
        self.path = path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> None:
        if self._conn is not None:
            return
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        with self._lock:
            self._conn.execute(_SCHEMA)
            self._conn.commit()
        logger.debug("Opened todo store at %s", self.path)

    def close(self) -> None:
        if self._conn is None:
            return
        with self._lock:
            self._conn.close()
            self._conn = None
        logger.debug("Closed todo store at %s", self.path)

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("todo store is not open")
        return self._conn

    def _insert(self, title: str) -> int:
        with self._lock:
            conn = self._connection()
            cursor = conn.execute("INSERT INTO todos (title) VALUES (?)", (title,))
            conn.commit()
            return int(cursor.lastrowid)

    def _delete(self, todo_id: int) -> int:
        with self._lock:
            conn = self._connection()
            cursor = conn.execute("DELETE FROM todos WHERE id = ?", (todo_id,))
            conn.commit()
            return cursor.rowcount

    def _select(self) -> list[Todo]:
        with self._lock:
            rows = self._connection().execute("SELECT id, title FROM todos ORDER BY id").fetchall()
        return [Todo(id=row[0], title=row[1]) for row in rows]

    async def add(self, title: str) -> int:
        return await asyncio.to_thread(self._insert, title)

    async def delete(self, todo_id: int) -> int:
        """Delete by id; returns the number of rows removed (0 when the id is unknown)."""
        return await asyncio.to_thread(self._delete, todo_id)

    async def fetch_all(self) -> list[Todo]:
        return await asyncio.to_thread(self._select)


@asynccontextmanager
async def open_store(path: str) -> AsyncIterator[TodoStore]:
    store = TodoStore(path)
    store.open()
    try:
        yield store
    finally:
        store.close()


__all__ = ["Todo", "TodoStore", "open_store"]
