# src/task_reminders/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
import uuid
from pathlib import Path
from typing import Any

from ..core.errors import NotFound, StoreUnavailable, ValidationFailed
from .date_classifier import normalize_due_date, today_str
from .task_models import UNSET, Task, Unset

logger = logging.getLogger(__name__)


def _clean_title(title: str | None) -> str:
    if title is None or not str(title).strip():
        raise ValidationFailed("title is required")
    return str(title).strip()


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Ids are uuid4 hex strings, so a deleted id is never handed out again.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        except sqlite3.Error as e:
            raise StoreUnavailable(f"cannot open {self._db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL,
                    completed_at REAL,
                    due_date TEXT
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
            add_col("created_at", "REAL NOT NULL DEFAULT 0")
            add_col("completed_at", "REAL")
            add_col("due_date", "TEXT")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_created ON tasks(created_at)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due_open ON tasks(completed, due_date)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        completed = bool(row["completed"])
        return Task(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            completed=completed,
            created_at=float(row["created_at"] or 0.0),
            completed_at=(
                float(row["completed_at"]) if completed and row["completed_at"] is not None else None
            ),
            due_date=row["due_date"] or None,
        )

    def _fetch_one(self, conn: sqlite3.Connection, task_id: str) -> Task | None:
        cur = conn.execute("SELECT * FROM tasks WHERE id = ?", (str(task_id),))
        row = cur.fetchone()
        return self._row_to_task(row) if row else None

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def list_tasks(self) -> list[Task]:
        """All tasks, most recent first."""
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT * FROM tasks ORDER BY created_at DESC, rowid DESC")
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def list_overdue_tasks(self, today: str | None = None) -> list[Task]:
        """
        Open tasks whose due date is before today, earliest due first.

        Same predicate as date_classifier.is_overdue, evaluated in SQL.
        """
        if today is None:
            today = today_str()

        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                SELECT *
                FROM tasks
                WHERE completed = 0
                  AND due_date IS NOT NULL
                  AND due_date != ''
                  AND due_date < ?
                ORDER BY due_date ASC, created_at ASC
                """,
                (today,),
            )
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def get_task(self, task_id: str) -> Task | None:
        conn = self._get_conn()
        try:
            return self._fetch_one(conn, task_id)
        finally:
            conn.close()

    def add_task(self, *, title: str, due_date: str | None = None) -> Task:
        clean_title = _clean_title(title)
        clean_due = normalize_due_date(due_date)

        task = Task(
            id=uuid.uuid4().hex,
            title=clean_title,
            completed=False,
            created_at=time.time(),
            completed_at=None,
            due_date=clean_due,
        )

        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO tasks(id, title, completed, created_at, completed_at, due_date)
                VALUES (?, ?, 0, ?, NULL, ?)
                """,
                (task.id, task.title, task.created_at, task.due_date),
            )
            conn.commit()
            logger.debug("Task added id=%s due_date=%s", task.id, task.due_date)
            return task
        finally:
            conn.close()

    def update_task(
        self,
        task_id: str,
        *,
        title: str | Unset = UNSET,
        completed: bool | Unset = UNSET,
        due_date: str | None | Unset = UNSET,
    ) -> Task:
        """
        Partial update. completed=True stamps completed_at=now,
        completed=False clears it; due_date=None clears the due date.
        """
        fields: list[str] = []
        params: list[Any] = []

        if not isinstance(title, Unset):
            fields.append("title = ?")
            params.append(_clean_title(title))

        if not isinstance(due_date, Unset):
            fields.append("due_date = ?")
            params.append(normalize_due_date(due_date))

        if not isinstance(completed, Unset):
            done = bool(completed)
            fields.append("completed = ?")
            params.append(1 if done else 0)
            fields.append("completed_at = ?")
            params.append(time.time() if done else None)

        conn = self._get_conn()
        try:
            if fields:
                params.append(str(task_id))
                sql = f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?"
                cur = conn.execute(sql, params)
                conn.commit()
                if cur.rowcount == 0:
                    raise NotFound(task_id)

            task = self._fetch_one(conn, task_id)
            if task is None:
                raise NotFound(task_id)
            logger.debug("Task updated id=%s fields=%s", task_id, len(fields))
            return task
        finally:
            conn.close()

    def delete_task(self, task_id: str) -> None:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (str(task_id),))
            conn.commit()
            if cur.rowcount == 0:
                raise NotFound(task_id)
            logger.debug("Task deleted id=%s", task_id)
        finally:
            conn.close()
