# src/dayroll/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from collections.abc import Iterator
from datetime import UTC, date, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from ..core.errors import PersistenceReadError, PersistenceWriteError
from .task_models import Task, TaskStatus

if TYPE_CHECKING:
    from .carry_forward import RolloverUpdate

logger = logging.getLogger(__name__)


def _instant_to_str(value: datetime) -> str:
    if value.tzinfo is None:
        raise ValueError("instants must be timezone-aware")
    return value.astimezone(UTC).isoformat()


def _str_to_instant(raw: str | None) -> datetime | None:
    if not raw:
        return None
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@contextlib.contextmanager
def _reading(what: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as e:
        raise PersistenceReadError(f"{what} failed: {e}") from e


@contextlib.contextmanager
def _writing(what: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as e:
        raise PersistenceWriteError(f"{what} failed: {e}") from e


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Storage formats:
    - instants (start_time, end_time) as ISO-8601 UTC text
    - calendar days (task_date, original_date) as YYYY-MM-DD text,
      so plain string comparison orders them correctly

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except PersistenceReadError:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

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

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT,
                    start_time TEXT NOT NULL,
                    end_time TEXT,
                    total_time_minutes INTEGER,
                    status TEXT NOT NULL DEFAULT 'pending',
                    image_path TEXT,
                    consecutive_missed_days INTEGER NOT NULL DEFAULT 0,
                    task_date TEXT NOT NULL,
                    original_date TEXT NOT NULL,
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL
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

            add_col("description", "TEXT")
            add_col("end_time", "TEXT")
            add_col("total_time_minutes", "INTEGER")
            add_col("image_path", "TEXT")
            add_col("consecutive_missed_days", "INTEGER NOT NULL DEFAULT 0")
            add_col("original_date", "TEXT NOT NULL DEFAULT ''")
            add_col("created_at", "REAL NOT NULL DEFAULT 0")
            add_col("updated_at", "REAL NOT NULL DEFAULT 0")

            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_tasks_user_date ON tasks(user_id, task_date)"
            )
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_tasks_user_status ON tasks(user_id, status, task_date)"
            )

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        task_date = date.fromisoformat(row["task_date"])
        original_raw = row["original_date"]
        start_time = _str_to_instant(row["start_time"])
        if start_time is None:
            raise PersistenceReadError(f"task {row['id']} has no start_time")
        minutes = row["total_time_minutes"]
        return Task(
            id=int(row["id"]),
            user_id=str(row["user_id"]),
            title=str(row["title"] or ""),
            description=row["description"],
            start_time=start_time,
            task_date=task_date,
            status=TaskStatus.from_db(row["status"]),
            consecutive_missed_days=int(row["consecutive_missed_days"] or 0),
            original_date=date.fromisoformat(original_raw) if original_raw else task_date,
            created_at=float(row["created_at"] or 0.0),
            updated_at=float(row["updated_at"] or 0.0),
            end_time=_str_to_instant(row["end_time"]),
            total_time_minutes=int(minutes) if minutes is not None else None,
            image_path=row["image_path"],
        )

    # ---- public API ----

    def count_tasks(self) -> int:
        with _reading("count_tasks"):
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute("SELECT COUNT(*) FROM tasks")
                (n,) = cur.fetchone()
                return int(n)
            finally:
                conn.close()

    def add_task(
        self,
        *,
        user_id: str,
        title: str,
        start_time: datetime,
        task_date: date,
        description: str | None = None,
        consecutive_missed_days: int = 0,
    ) -> int:
        if not user_id:
            raise ValueError("user_id is required")
        if not title or not title.strip():
            raise ValueError("title is required")

        now = time.time()
        with _writing("add_task"):
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute(
                    """
                    INSERT INTO tasks(
                        user_id, title, description, start_time,
                        status, consecutive_missed_days, task_date, original_date,
                        created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        title.strip(),
                        description.strip() if description else None,
                        _instant_to_str(start_time),
                        TaskStatus.PENDING.value,
                        max(0, int(consecutive_missed_days)),
                        task_date.isoformat(),
                        task_date.isoformat(),
                        now,
                        now,
                    ),
                )
                conn.commit()
                rowid = cur.lastrowid
                if rowid is None:
                    raise RuntimeError("SQLite did not return lastrowid for tasks insert")
                task_id = int(rowid)
            finally:
                conn.close()

        logger.debug(
            "Task added id=%s user=%s task_date=%s start=%s",
            task_id,
            user_id,
            task_date,
            start_time,
        )
        return task_id

    def get_task(self, task_id: int) -> Task | None:
        with _reading("get_task"):
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),))
                row = cur.fetchone()
            finally:
                conn.close()
        return self._row_to_task(row) if row else None

    def list_overdue_pending(self, user_id: str, today: date) -> list[Task]:
        """Pending tasks of `user_id` whose task_date is strictly before `today`."""
        with _reading("list_overdue_pending"):
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute(
                    """
                    SELECT *
                    FROM tasks
                    WHERE user_id = ?
                      AND status = 'pending'
                      AND task_date < ?
                    ORDER BY task_date ASC, id ASC
                    """,
                    (user_id, today.isoformat()),
                )
                rows = cur.fetchall()
            finally:
                conn.close()
        return [self._row_to_task(r) for r in rows]

    def list_tasks_for_day(self, user_id: str, day: date) -> list[Task]:
        """All tasks of `user_id` on local day `day`, earliest start first."""
        with _reading("list_tasks_for_day"):
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute(
                    """
                    SELECT *
                    FROM tasks
                    WHERE user_id = ?
                      AND task_date = ?
                    ORDER BY start_time ASC, id ASC
                    """,
                    (user_id, day.isoformat()),
                )
                rows = cur.fetchall()
            finally:
                conn.close()
        return [self._row_to_task(r) for r in rows]

    def apply_rollover(self, update: RolloverUpdate) -> bool:
        """
        Atomically move a task to its new day.

        Writes task_date, start_time and consecutive_missed_days together, and
        only if the row still has the values the update was computed from.
        Returns True if this caller's update won.
        """
        with _writing("apply_rollover"):
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute(
                    """
                    UPDATE tasks
                    SET task_date = ?,
                        start_time = ?,
                        consecutive_missed_days = ?,
                        updated_at = ?
                    WHERE id = ?
                      AND status = 'pending'
                      AND task_date = ?
                      AND consecutive_missed_days = ?
                    """,
                    (
                        update.new_task_date.isoformat(),
                        _instant_to_str(update.new_start_time),
                        int(update.new_missed_days),
                        time.time(),
                        int(update.task_id),
                        update.expected_task_date.isoformat(),
                        int(update.expected_missed_days),
                    ),
                )
                conn.commit()
                return cur.rowcount == 1
            finally:
                conn.close()

    def mark_completed(
        self,
        task_id: int,
        *,
        end_time: datetime,
        total_time_minutes: int,
        image_path: str | None,
    ) -> bool:
        """
        pending -> completed, recording end time, duration and photo path.

        Returns False if the task is missing or no longer pending.
        """
        with _writing("mark_completed"):
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute(
                    """
                    UPDATE tasks
                    SET status = 'completed',
                        end_time = ?,
                        total_time_minutes = ?,
                        image_path = ?,
                        updated_at = ?
                    WHERE id = ?
                      AND status = 'pending'
                    """,
                    (
                        _instant_to_str(end_time),
                        int(total_time_minutes),
                        image_path,
                        time.time(),
                        int(task_id),
                    ),
                )
                conn.commit()
                return cur.rowcount == 1
            finally:
                conn.close()
