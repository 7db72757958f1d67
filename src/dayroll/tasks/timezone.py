# src/dayroll/tasks/timezone.py

"""
Timezone helpers.

All day-boundary decisions are made in the user's IANA zone:
- "today" is the local calendar date of the injected `now`,
- start of today/tomorrow are local midnights expressed as UTC instants.

Nothing here is cached: callers pass `now` on every call, so a new day or a
changed profile timezone is picked up by the next pass.
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, time, timedelta
from enum import StrEnum
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"


class DisplayKind(StrEnum):
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"


def utc_now() -> datetime:
    """Single source of "now" (timezone-aware, UTC)."""
    return datetime.now(UTC)


@lru_cache(maxsize=64)
def _load_zone(tz_name: str) -> ZoneInfo:
    return ZoneInfo(tz_name)


def is_valid_timezone(tz_name: str | None) -> bool:
    if not tz_name or not tz_name.strip():
        return False
    try:
        _load_zone(tz_name.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError):
        # OSError: ids naming a tzdata directory ("America") or unreadable files.
        return False
    return True


def resolve_timezone(stored: str | None, default: str = DEFAULT_TIMEZONE) -> str:
    """
    Return the stored timezone id if it is usable, else the default.

    An unusable default falls back to UTC.
    """
    if is_valid_timezone(stored):
        return stored.strip()  # type: ignore[union-attr]
    if stored:
        logger.warning("Unknown timezone %r; falling back to %s", stored, default)
    if is_valid_timezone(default):
        return default.strip()
    logger.warning("Default timezone %r is invalid; using %s", default, DEFAULT_TIMEZONE)
    return DEFAULT_TIMEZONE


def get_zone(tz_name: str) -> ZoneInfo:
    return _load_zone(tz_name)


def _require_aware(value: datetime, name: str) -> None:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware")


def local_today(tz_name: str, now: datetime) -> date:
    _require_aware(now, "now")
    return now.astimezone(get_zone(tz_name)).date()


def local_midnight_utc(day: date, tz_name: str) -> datetime:
    """UTC instant of 00:00:00 local time on `day`."""
    local = datetime.combine(day, time(0, 0), tzinfo=get_zone(tz_name))
    return local.astimezone(UTC)


def start_of_today(tz_name: str, now: datetime) -> datetime:
    return local_midnight_utc(local_today(tz_name, now), tz_name)


def start_of_tomorrow(tz_name: str, now: datetime) -> datetime:
    return local_midnight_utc(local_today(tz_name, now) + timedelta(days=1), tz_name)


def local_to_utc(local_input: str | datetime, tz_name: str) -> datetime:
    """
    Convert a local wall-clock value (e.g. "2025-01-15T19:00") to a UTC instant.

    Aware datetimes (or ISO strings with an offset) are converted as-is.
    """
    if isinstance(local_input, str):
        raw = local_input.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        value = datetime.fromisoformat(raw)
    else:
        value = local_input

    if value.tzinfo is None:
        value = value.replace(tzinfo=get_zone(tz_name))
    return value.astimezone(UTC)


def utc_to_local(instant: datetime, tz_name: str) -> datetime:
    _require_aware(instant, "instant")
    return instant.astimezone(get_zone(tz_name))


def utc_to_local_input(instant: datetime, tz_name: str) -> str:
    """Local "YYYY-MM-DDTHH:MM" form, as used by datetime inputs."""
    return utc_to_local(instant, tz_name).strftime("%Y-%m-%dT%H:%M")


def format_for_display(instant: datetime, tz_name: str, kind: DisplayKind | str) -> str:
    local = utc_to_local(instant, tz_name)
    if kind == DisplayKind.DATE:
        return f"{local:%b} {local.day}, {local.year}"
    if kind == DisplayKind.TIME:
        return _format_clock(local)
    if kind == DisplayKind.DATETIME:
        return f"{local:%b} {local.day}, {local.year}, {_format_clock(local)}"
    return local.isoformat()


def _format_clock(local: datetime) -> str:
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d} {suffix}"
