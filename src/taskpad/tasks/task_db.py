# src/taskpad/tasks/task_db.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from .task_models import Priority, Task, handle_from_db, handle_to_db

logger = logging.getLogger(__name__)

_UPSERT_SQL = """
    INSERT INTO tasks(
        id, description, date, priority,
        isCompleted, notificationId, notificationMinutesBefore
    )
    VALUES (:id, :description, :date, :priority,
            :is_completed, :notification_id, :minutes_before)
    ON CONFLICT(id) DO UPDATE SET
        description = excluded.description,
        date = excluded.date,
        priority = excluded.priority,
        isCompleted = excluded.isCompleted,
        notificationId = excluded.notificationId,
        notificationMinutesBefore = excluded.notificationMinutesBefore
"""


class SqliteTaskRepo:
    """
    SQLite durable mirror of the task collection.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection (the gateway calls us from worker threads)
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("SqliteTaskRepo ready db=%s total=%s", self._db_path, total)

    @property
    def db_path(self) -> Path:
        return self._db_path

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

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    description TEXT NOT NULL,
                    date TEXT NOT NULL,
                    priority TEXT NOT NULL CHECK (priority IN ('low', 'medium', 'high')),
                    isCompleted INTEGER NOT NULL DEFAULT 0,
                    notificationId TEXT NOT NULL DEFAULT '',
                    notificationMinutesBefore INTEGER
                )
                """
            )

            # Older databases were created before reminders existed.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("SqliteTaskRepo migration: added column %s", name)

            def rename_col(old: str, new: str) -> None:
                if old not in cols or new in cols:
                    return
                cur.execute(f"ALTER TABLE tasks RENAME COLUMN {old} TO {new}")
                cols.discard(old)
                cols.add(new)
                logger.info("SqliteTaskRepo migration: renamed column %s -> %s", old, new)

            # Early builds used snake_case for the reminder columns.
            rename_col("notification_id", "notificationId")
            rename_col("notification_minutes_before", "notificationMinutesBefore")

            add_col("isCompleted", "INTEGER NOT NULL DEFAULT 0")
            add_col("notificationId", "TEXT NOT NULL DEFAULT ''")
            add_col("notificationMinutesBefore", "INTEGER")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_completed ON tasks(isCompleted)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _task_to_params(task: Task) -> dict[str, object]:
        return {
            "id": task.id,
            "description": task.description,
            "date": task.due_at.isoformat(),
            "priority": task.priority.value,
            "is_completed": 1 if task.is_completed else 0,
            "notification_id": handle_to_db(task.reminder),
            "minutes_before": task.reminder_offset_minutes,
        }

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        minutes = row["notificationMinutesBefore"]
        return Task(
            id=str(row["id"]),
            description=str(row["description"] or ""),
            due_at=datetime.fromisoformat(str(row["date"])),
            priority=Priority(str(row["priority"])),
            is_completed=bool(row["isCompleted"]),
            reminder_offset_minutes=int(minutes) if minutes is not None else None,
            reminder=handle_from_db(row["notificationId"]),
        )

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

    def check_health(self) -> bool:
        try:
            self.count_tasks()
        except sqlite3.Error:
            logger.exception("Database health check failed db=%s", self._db_path)
            return False
        return True

    def select_all(self) -> list[Task]:
        """All rows in insertion order. Unreadable rows are skipped, not fatal."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks ORDER BY rowid ASC")
            rows = cur.fetchall()
        finally:
            conn.close()

        out: list[Task] = []
        for row in rows:
            try:
                out.append(self._row_to_task(row))
            except (TypeError, ValueError):
                logger.warning("Skipping unreadable task row id=%s", row["id"], exc_info=True)
        logger.debug("Loaded %d tasks from %s", len(out), self._db_path)
        return out

    def insert(self, task: Task) -> None:
        """Upsert keyed by id, so a retried insert is harmless."""
        conn = self._get_conn()
        try:
            conn.execute(_UPSERT_SQL, self._task_to_params(task))
            conn.commit()
            logger.debug("Task saved id=%s", task.id)
        finally:
            conn.close()

    def update(self, task: Task) -> None:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                UPDATE tasks
                SET description = :description,
                    date = :date,
                    priority = :priority,
                    isCompleted = :is_completed,
                    notificationId = :notification_id,
                    notificationMinutesBefore = :minutes_before
                WHERE id = :id
                """,
                self._task_to_params(task),
            )
            if cur.rowcount == 0:
                # An earlier insert was lost; the in-memory task is authoritative.
                logger.warning("Task update matched no row, re-inserting id=%s", task.id)
                conn.execute(_UPSERT_SQL, self._task_to_params(task))
            conn.commit()
            logger.debug("Task updated id=%s", task.id)
        finally:
            conn.close()

    def delete(self, task_id: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.commit()
            logger.debug("Task deleted id=%s", task_id)
        finally:
            conn.close()

    def delete_completed(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks WHERE isCompleted = 1")
            conn.commit()
            return int(cur.rowcount)
        finally:
            conn.close()

    def delete_all(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks")
            conn.commit()
            return int(cur.rowcount)
        finally:
            conn.close()
