from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from threading import RLock
from typing import Generator, List, Optional

from .errors import NotFoundError, StorageError
from .models import TaskEntity, merge_task
from .repositories import Repository
from .schemas import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"

# Range of a SQLite INTEGER; ids outside it cannot name any row.
_ID_MIN = -(2**63)
_ID_MAX = 2**63 - 1


@dataclass(frozen=True)
class _Cols:
    table: str = "tasks"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    completed: str = "completed"
    user_id: str = "user_id"


_COLS = _Cols()


class SQLiteRepository(Repository):
    """
    SQLite repository implementing the Repository interface.

    File databases get a fresh connection per operation. ':memory:' keeps one
    shared connection for the lifetime of the repository, since every new
    connection would otherwise see an empty database.
    """

    def __init__(self, db_path: str, create_schema: bool = True) -> None:
        self._db_path = db_path
        self._is_memory = db_path == MEMORY_DB
        self._shared: Optional[sqlite3.Connection] = None
        self._shared_lock = RLock()
        if not self._is_memory:
            os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        if create_schema:
            self._init_db()
        logger.info("SQLite store ready db=%s schema_sync=%s", db_path, create_schema)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=not self._is_memory)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            if self._is_memory:
                with self._shared_lock:
                    if self._shared is None:
                        self._shared = self._connect()
                    conn = self._shared
                    try:
                        yield conn
                        conn.commit()
                    except Exception:
                        conn.rollback()
                        raise
            else:
                conn = self._connect()
                try:
                    yield conn
                    conn.commit()
                except Exception:
                    conn.rollback()
                    raise
                finally:
                    conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"SQLite operation failed on {self._db_path}: {e}") from e

    def close(self) -> None:
        """Close the shared in-memory connection, if any."""
        with self._shared_lock:
            if self._shared is not None:
                self._shared.close()
                self._shared = None

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.description} TEXT NOT NULL DEFAULT '',
                    {_COLS.completed} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.user_id} TEXT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_user_id ON {_COLS.table}({_COLS.user_id})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TaskEntity:
        return TaskEntity(
            id=int(row[_COLS.id]),
            title=str(row[_COLS.title]),
            description=row[_COLS.description] or "",
            completed=bool(row[_COLS.completed]),
            user_id=row[_COLS.user_id],
        )

    def _select_one(self, conn: sqlite3.Connection, task_id: int) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,)).fetchone()

    def list(self, user_id: Optional[str] = None) -> List[TaskEntity]:
        with self._conn() as conn:
            if user_id is None:
                rows = conn.execute(f"SELECT * FROM {_COLS.table} ORDER BY {_COLS.id} ASC").fetchall()
            else:
                rows = conn.execute(
                    f"SELECT * FROM {_COLS.table} WHERE {_COLS.user_id} = ? ORDER BY {_COLS.id} DESC",
                    (user_id,),
                ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def get(self, task_id: int) -> Optional[TaskEntity]:
        if not _ID_MIN <= task_id <= _ID_MAX:
            return None
        with self._conn() as conn:
            row = self._select_one(conn, task_id)
            return self._row_to_entity(row) if row else None

    def create(self, data: TaskCreate) -> TaskEntity:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.title}, {_COLS.description}, {_COLS.completed}, {_COLS.user_id})
                VALUES (?, ?, ?, ?)
                """,
                (data.title, data.description, 1 if data.completed else 0, data.user_id),
            )
            row = self._select_one(conn, cur.lastrowid)
            assert row is not None
            entity = self._row_to_entity(row)
        logger.info("Created task id=%s user_id=%s", entity.id, entity.user_id)
        return entity

    def update(self, task_id: int, data: TaskUpdate) -> TaskEntity:
        changes = data.changes()
        if not _ID_MIN <= task_id <= _ID_MAX:
            raise NotFoundError(task_id)
        with self._conn() as conn:
            # Take the write lock before reading so the merge sees the row it overwrites.
            conn.execute("BEGIN IMMEDIATE")
            row = self._select_one(conn, task_id)
            if not row:
                raise NotFoundError(task_id)
            updated = merge_task(self._row_to_entity(row), changes)
            cur = conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.title} = ?, {_COLS.description} = ?, {_COLS.completed} = ?, {_COLS.user_id} = ?
                WHERE {_COLS.id} = ?
                """,
                (
                    updated.title,
                    updated.description,
                    1 if updated.completed else 0,
                    updated.user_id,
                    task_id,
                ),
            )
            if cur.rowcount == 0:
                # The row read above no longer matches.
                raise NotFoundError(task_id)
        logger.info("Updated task id=%s fields=%s", task_id, sorted(changes))
        return updated

    def delete(self, task_id: int) -> None:
        if not _ID_MIN <= task_id <= _ID_MAX:
            logger.info("Delete task id=%s existed=False", task_id)
            return
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,))
            removed = cur.rowcount
        logger.info("Delete task id=%s existed=%s", task_id, removed > 0)
