# src/dayroll/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage backends swappable and makes testing easier.
"""

from datetime import date, datetime
from typing import Any, Protocol


class TaskRepo(Protocol):
    # Carry-forward API
    def list_overdue_pending(self, user_id: str, today: date) -> list[Any]: ...
    def apply_rollover(self, update: Any) -> bool: ...

    # Listing / lookup
    def list_tasks_for_day(self, user_id: str, day: date) -> list[Any]: ...
    def get_task(self, task_id: int) -> Any | None: ...

    # Creation / completion
    def add_task(
            self,
            *,
            user_id: str,
            title: str,
            start_time: datetime,
            task_date: date,
            description: str | None = None,
    ) -> int: ...

    def mark_completed(
            self,
            task_id: int,
            *,
            end_time: datetime,
            total_time_minutes: int,
            image_path: str | None,
    ) -> bool: ...


class ProfileRepo(Protocol):
    def get_timezone(self, user_id: str) -> str | None: ...
    def set_timezone(self, user_id: str, tz_name: str) -> None: ...


class ObjectStorage(Protocol):
    """
    Blob storage for completion photos.

    `upload` returns the stored path that goes into Task.image_path.
    """

    def upload(self, path: str, data: bytes) -> str: ...
    def remove(self, path: str) -> None: ...
