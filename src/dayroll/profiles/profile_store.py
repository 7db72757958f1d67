# src/dayroll/profiles/profile_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from pathlib import Path

from ..core.errors import PersistenceReadError, PersistenceWriteError

logger = logging.getLogger(__name__)


class ProfileStore:
    """
    SQLite profile store (one row per user).

    Only the timezone preference lives here. A missing row or an empty
    timezone both mean "use the default".
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("ProfileStore ready db=%s", self._db_path)

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS profiles (
                    user_id TEXT PRIMARY KEY,
                    timezone TEXT,
                    updated_at REAL NOT NULL DEFAULT 0
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def get_timezone(self, user_id: str) -> str | None:
        try:
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute("SELECT timezone FROM profiles WHERE user_id = ?", (user_id,))
                row = cur.fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceReadError(f"get_timezone failed: {e}") from e

        if row is None:
            return None
        tz = row["timezone"]
        return str(tz) if tz else None

    def set_timezone(self, user_id: str, tz_name: str) -> None:
        if not user_id:
            raise ValueError("user_id is required")
        try:
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO profiles(user_id, timezone, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        timezone = excluded.timezone,
                        updated_at = excluded.updated_at
                    """,
                    (user_id, tz_name, time.time()),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceWriteError(f"set_timezone failed: {e}") from e
        logger.info("Profile timezone set user=%s tz=%s", user_id, tz_name)
