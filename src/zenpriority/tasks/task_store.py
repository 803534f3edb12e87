# src/zenpriority/tasks/task_store.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
from pathlib import Path
from typing import Any

from ..core.errors import TaskTableError
from ..core.ports import TaskRow

logger = logging.getLogger(__name__)

_COLUMNS = ("id", "title", "description", "color", "priority", "created_at", "order_index")


class SQLiteTaskTable:
    """
    Local SQLite rendition of the remote "tasks" table.

    Same columns and the same five operations as the hosted table, so the
    board can run against a file on disk.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each call opens its own SQLite connection
    - async methods run the blocking work in a worker thread
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3", *, name: str = "tasks") -> None:
        if not name.isidentifier():
            raise ValueError(f"invalid table name: {name!r}")
        self.name = name
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_rows()
        except Exception:
            total = -1
        logger.info("SQLiteTaskTable ready db=%s table=%s total=%s", self._db_path, self.name, total)

    async def aclose(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.name} (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL DEFAULT '',
                    description TEXT NOT NULL DEFAULT '',
                    color TEXT NOT NULL DEFAULT 'blue',
                    priority TEXT NOT NULL DEFAULT 'medium',
                    created_at INTEGER NOT NULL DEFAULT 0,
                    order_index INTEGER NOT NULL DEFAULT 0
                )
                """
            )

            cur.execute(f"PRAGMA table_info({self.name})")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE {self.name} ADD COLUMN {name} {decl}")
                logger.info("SQLiteTaskTable migration: added column %s", name)

            # Early boards had no manual ordering and no color tag.
            add_col("color", "TEXT NOT NULL DEFAULT 'blue'")
            add_col("priority", "TEXT NOT NULL DEFAULT 'medium'")
            add_col("order_index", "INTEGER NOT NULL DEFAULT 0")

            cur.execute(f"CREATE INDEX IF NOT EXISTS idx_{self.name}_order ON {self.name}(order_index)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_dict(row: sqlite3.Row) -> TaskRow:
        return {k: row[k] for k in row.keys()}

    def _run(self, op: str, fn: Any, *args: Any) -> Any:
        try:
            return fn(*args)
        except sqlite3.Error as e:
            raise TaskTableError(f"sqlite {op} failed: {e}") from e

    # ---- blocking implementations ----

    def count_rows(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute(f"SELECT COUNT(*) FROM {self.name}").fetchone()
            return int(n)
        finally:
            conn.close()

    def _select_ordered(self) -> list[TaskRow]:
        conn = self._get_conn()
        try:
            cur = conn.execute(f"SELECT * FROM {self.name} ORDER BY order_index ASC, created_at ASC")
            return [self._row_to_dict(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def _insert(self, row: TaskRow) -> None:
        values = [row.get(c) for c in _COLUMNS]
        conn = self._get_conn()
        try:
            conn.execute(
                f"INSERT INTO {self.name}({', '.join(_COLUMNS)}) VALUES ({', '.join('?' for _ in _COLUMNS)})",
                values,
            )
            conn.commit()
            logger.debug("Row inserted id=%s order_index=%s", row.get("id"), row.get("order_index"))
        finally:
            conn.close()

    def _update(self, task_id: str, fields: TaskRow) -> None:
        cols = [c for c in fields if c in _COLUMNS and c != "id"]
        if not cols:
            return
        sql = f"UPDATE {self.name} SET {', '.join(f'{c} = ?' for c in cols)} WHERE id = ?"
        conn = self._get_conn()
        try:
            conn.execute(sql, [*(fields[c] for c in cols), task_id])
            conn.commit()
        finally:
            conn.close()

    def _delete(self, task_id: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(f"DELETE FROM {self.name} WHERE id = ?", (task_id,))
            conn.commit()
        finally:
            conn.close()

    def _upsert(self, rows: list[TaskRow]) -> None:
        if not rows:
            return
        assignments = ", ".join(f"{c} = excluded.{c}" for c in _COLUMNS if c != "id")
        sql = (
            f"INSERT INTO {self.name}({', '.join(_COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in _COLUMNS)}) "
            f"ON CONFLICT(id) DO UPDATE SET {assignments}"
        )
        conn = self._get_conn()
        try:
            # One transaction for the whole batch.
            conn.executemany(sql, [[r.get(c) for c in _COLUMNS] for r in rows])
            conn.commit()
            logger.debug("Upserted %d rows", len(rows))
        finally:
            conn.close()

    # ---- TaskTable API ----

    async def select_ordered(self) -> list[TaskRow]:
        return await asyncio.to_thread(self._run, "select", self._select_ordered)

    async def insert(self, row: TaskRow) -> None:
        await asyncio.to_thread(self._run, "insert", self._insert, row)

    async def update(self, task_id: str, fields: TaskRow) -> None:
        await asyncio.to_thread(self._run, "update", self._update, task_id, fields)

    async def delete(self, task_id: str) -> None:
        await asyncio.to_thread(self._run, "delete", self._delete, task_id)

    async def upsert(self, rows: list[TaskRow]) -> None:
        await asyncio.to_thread(self._run, "upsert", self._upsert, rows)
