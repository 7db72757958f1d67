# src/dayroll/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Notes:
    - a task goes pending -> completed exactly once; there is no way back.
    - only pending tasks are touched by the carry-forward pass.
    """

    PENDING = "pending"
    COMPLETED = "completed"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


@dataclass(slots=True)
class Task:
    id: int
    user_id: str
    title: str
    description: str | None

    # UTC instant of the scheduled moment.
    start_time: datetime
    # Local calendar day (user's timezone) the task belongs to.
    task_date: date
    status: TaskStatus
    consecutive_missed_days: int
    original_date: date

    created_at: float
    updated_at: float

    # Set only on completion.
    end_time: datetime | None = None
    total_time_minutes: int | None = None
    image_path: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED


@dataclass(slots=True)
class UserProfile:
    user_id: str
    timezone: str | None = None
