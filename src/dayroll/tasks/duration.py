# src/dayroll/tasks/duration.py

from __future__ import annotations

from datetime import datetime

from ..core.errors import ValidationError


def compute_duration(start: datetime, end: datetime) -> int:
    """
    Whole elapsed minutes between two instants (floored).

    Both values are absolute instants; the user's timezone plays no part here.
    Raises ValidationError if end is earlier than start.
    """
    if start.tzinfo is None or end.tzinfo is None:
        raise ValidationError("start and end must be timezone-aware instants")
    if end < start:
        raise ValidationError(
            f"Completion time {end.isoformat()} is earlier than start {start.isoformat()}"
        )
    return int((end - start).total_seconds() // 60)


def format_duration(minutes: int) -> str:
    """
    45  -> "45m"
    75  -> "1h 15m"
    120 -> "2h"
    """
    if minutes < 0:
        raise ValidationError("duration cannot be negative")
    if minutes < 60:
        return f"{minutes}m"
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}m" if rest else f"{hours}h"
