# src/todo_app/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from ..errors import StorageError, ValidationError
from .task_models import Task, TaskPatch, utc_now_iso

logger = logging.getLogger(__name__)

_COLUMNS = "id, title, completed, created_at, updated_at"


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    - writes are serialized by SQLite's own locking

    Every sqlite3.Error is re-raised as StorageError.
    """

    def __init__(self, db_path: str | Path = "todo.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except StorageError:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    @contextlib.contextmanager
    def _session(self, op: str) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, always close; wrap SQLite failures."""
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise StorageError(f"{op} failed: cannot open database") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            with contextlib.suppress(sqlite3.Error):
                conn.rollback()
            raise StorageError(f"{op} failed: {e}") from e
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._session("ensure_schema") as conn:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("completed", "INTEGER NOT NULL DEFAULT 0")
            add_col("created_at", "TEXT NOT NULL DEFAULT ''")
            add_col("updated_at", "TEXT")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_completed ON tasks(completed)")

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            title=str(row["title"] or ""),
            completed=bool(row["completed"]),
            created_at=str(row["created_at"] or ""),
            updated_at=row["updated_at"] or None,
        )

    @staticmethod
    def _fetch_one(conn: sqlite3.Connection, task_id: int) -> sqlite3.Row | None:
        cur = conn.execute(f"SELECT {_COLUMNS} FROM tasks WHERE id = ?", (int(task_id),))
        return cur.fetchone()

    # ---- public API ----

    def count_tasks(self) -> int:
        with self._session("count_tasks") as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def list_tasks(self) -> list[Task]:
        """All tasks, most recent first (created_at DESC, id DESC)."""
        with self._session("list_tasks") as conn:
            cur = conn.execute(
                f"SELECT {_COLUMNS} FROM tasks ORDER BY created_at DESC, id DESC"
            )
            return [self._row_to_task(r) for r in cur.fetchall()]

    def get_task(self, task_id: int) -> Task | None:
        with self._session("get_task") as conn:
            row = self._fetch_one(conn, task_id)
            return self._row_to_task(row) if row else None

    def create_task(self, title: str, completed: bool = False) -> Task:
        clean = (title or "").strip()
        if not clean:
            raise ValidationError("Title is required")

        now = utc_now_iso()
        with self._session("create_task") as conn:
            cur = conn.execute(
                "INSERT INTO tasks(title, completed, created_at) VALUES (?, ?, ?)",
                (clean, 1 if completed else 0, now),
            )
            rowid = cur.lastrowid
            if rowid is None:
                raise StorageError("SQLite did not return lastrowid for tasks insert")
            row = self._fetch_one(conn, rowid)
            if row is None:
                raise StorageError(f"Inserted task id={rowid} could not be read back")
            task = self._row_to_task(row)

        logger.debug("Task created id=%s completed=%s", task.id, task.completed)
        return task

    def update_task(self, task_id: int, patch: TaskPatch) -> Task | None:
        """
        Apply the present fields of `patch` and refresh updated_at.

        updated_at is refreshed even for an empty patch. A title that is empty
        after trimming is ignored. Returns None (and writes nothing) when no
        task exists for `task_id`.
        """
        fields: list[str] = []
        params: list[Any] = []

        if patch.title is not None:
            clean = patch.title.strip()
            if clean:
                fields.append("title = ?")
                params.append(clean)
            else:
                logger.debug("Ignoring empty title in update id=%s", task_id)

        if patch.completed is not None:
            fields.append("completed = ?")
            params.append(1 if patch.completed else 0)

        fields.append("updated_at = ?")
        params.append(utc_now_iso())
        params.append(int(task_id))

        sql = f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?"

        with self._session("update_task") as conn:
            cur = conn.execute(sql, params)
            if cur.rowcount == 0:
                logger.debug("Update skipped, no task id=%s", task_id)
                return None
            row = self._fetch_one(conn, task_id)
            task = self._row_to_task(row) if row else None

        logger.debug("Task updated id=%s fields=%s", task_id, len(fields) - 1)
        return task

    def delete_task(self, task_id: int) -> bool:
        with self._session("delete_task") as conn:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
            deleted = cur.rowcount > 0

        logger.debug("Task delete id=%s deleted=%s", task_id, deleted)
        return deleted
