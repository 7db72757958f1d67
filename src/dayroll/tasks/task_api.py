# src/dayroll/tasks/task_api.py

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from datetime import date, datetime

from ..core.context import SessionContext
from ..core.errors import (
    AuthenticationMissing,
    PersistenceReadError,
    PersistenceWriteError,
    UploadError,
    ValidationError,
)
from ..core.state import AppState
from ..storage.object_store import completion_image_path
from .carry_forward import RolloverReport, run_carry_forward
from .classifier import classify_task, pick_nag_message
from .duration import compute_duration, format_duration
from .task_models import Task
from .timezone import (
    DisplayKind,
    format_for_display,
    get_zone,
    local_to_utc,
    resolve_timezone,
    utc_now,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TodayView:
    context: SessionContext
    tasks: list[Task] = field(default_factory=list)
    rollover: RolloverReport = field(default_factory=RolloverReport)


@dataclass(slots=True, frozen=True)
class CompletionResult:
    task_id: int
    end_time: datetime
    total_time_minutes: int
    image_path: str | None

    @property
    def message(self) -> str:
        return f"Great job! You took {format_duration(self.total_time_minutes)}."


@dataclass(slots=True, frozen=True)
class TaskCardView:
    task_id: int
    title: str
    description: str | None
    label: str
    start_local: str
    duration: str | None
    has_photo: bool
    nag: str | None
    can_complete: bool


def _default_timezone(state: AppState) -> str:
    return str(getattr(state.settings, "default_timezone", "UTC") or "UTC")


def build_context(state: AppState, user_id: str | None, now: datetime | None = None) -> SessionContext:
    """
    Resolve who/when for one session.

    The profile timezone is read fresh every time; a read failure falls back
    to the default timezone (the pass still runs, just in the default zone).
    """
    if now is None:
        now = utc_now()
    default_tz = _default_timezone(state)

    stored: str | None = None
    if user_id:
        try:
            stored = state.profiles.get_timezone(user_id)
        except Exception:
            logger.warning("Profile timezone read failed user=%s; using %s", user_id, default_tz)

    return SessionContext(user_id=user_id or None, timezone=resolve_timezone(stored, default_tz), now=now)


async def open_session(state: AppState, user_id: str | None, now: datetime | None = None) -> TodayView:
    """
    Start-of-session flow: resolve timezone -> carry-forward -> today's list.

    Without a user nothing is read or written and an empty view is returned.
    Fetch errors propagate (PersistenceReadError); rollover errors never do.
    """
    ctx = build_context(state, user_id, now)
    if not ctx.user_id:
        return TodayView(context=ctx, rollover=RolloverReport(skipped=True))

    report = await run_carry_forward(state.task_store, ctx)
    tasks = fetch_tasks_for_day(state, ctx)
    return TodayView(context=ctx, tasks=tasks, rollover=report)


def fetch_tasks_for_day(state: AppState, ctx: SessionContext, day: date | None = None) -> list[Task]:
    """Tasks on `day` (default: ctx.today) ordered by start time."""
    if not ctx.user_id:
        return []
    target = day or ctx.today
    try:
        return state.task_store.list_tasks_for_day(ctx.user_id, target)
    except PersistenceReadError:
        raise
    except Exception as e:
        raise PersistenceReadError(f"Could not load tasks for {target}: {e}") from e


def create_task(
    state: AppState,
    ctx: SessionContext,
    *,
    title: str,
    local_start: str | datetime,
    description: str | None = None,
) -> int:
    """
    Create a pending task from a local wall-clock start.

    task_date is the local date of the start in the user's timezone.
    """
    if not ctx.user_id:
        raise AuthenticationMissing("Sign in to create tasks")
    if not title or not title.strip():
        raise ValidationError("title is required")

    try:
        start = local_to_utc(local_start, ctx.timezone)
    except ValueError as e:
        raise ValidationError(f"invalid start time {local_start!r}") from e

    task_date = start.astimezone(get_zone(ctx.timezone)).date()
    task_id = state.task_store.add_task(
        user_id=ctx.user_id,
        title=title,
        start_time=start,
        task_date=task_date,
        description=description,
    )
    logger.info("Task created id=%s user=%s task_date=%s", task_id, ctx.user_id, task_date)
    return task_id


def complete_task(
    state: AppState,
    ctx: SessionContext,
    task_id: int,
    *,
    completed_at: str | datetime,
    image: bytes | None = None,
    image_name: str | None = None,
) -> CompletionResult:
    """
    Mark a pending task completed.

    Order matters (fail closed):
    1) validate time and duration,
    2) upload the photo if one was given,
    3) write the row.
    Nothing is written if steps 1-2 fail; if step 3 fails the photo is removed.
    """
    if not ctx.user_id:
        raise AuthenticationMissing("Not authenticated")

    task = state.task_store.get_task(task_id)
    if task is None or task.user_id != ctx.user_id:
        raise ValidationError(f"Task {task_id} not found")
    if task.is_completed:
        raise ValidationError(f"Task {task_id} is already completed")

    try:
        end_time = local_to_utc(completed_at, ctx.timezone)
    except ValueError as e:
        raise ValidationError(f"invalid completion time {completed_at!r}") from e

    minutes = compute_duration(task.start_time, end_time)

    image_path = task.image_path
    uploaded: str | None = None
    if image is not None:
        key = completion_image_path(
            ctx.user_id,
            task.id,
            int(time.time() * 1000),
            image_name or "photo.jpg",
        )
        try:
            uploaded = state.objects.upload(key, image)
        except UploadError:
            raise
        except Exception as e:
            raise UploadError(f"Photo upload failed: {e}") from e
        image_path = uploaded

    try:
        ok = state.task_store.mark_completed(
            task.id,
            end_time=end_time,
            total_time_minutes=minutes,
            image_path=image_path,
        )
    except Exception as e:
        _discard_upload(state, uploaded)
        if isinstance(e, PersistenceWriteError):
            raise
        raise PersistenceWriteError(f"Could not complete task {task.id}: {e}") from e

    if not ok:
        _discard_upload(state, uploaded)
        raise ValidationError(f"Task {task.id} is no longer pending")

    logger.info("Task %s completed in %s min (photo=%s)", task.id, minutes, bool(uploaded))
    return CompletionResult(
        task_id=task.id,
        end_time=end_time,
        total_time_minutes=minutes,
        image_path=image_path,
    )


def _discard_upload(state: AppState, path: str | None) -> None:
    if not path:
        return
    try:
        state.objects.remove(path)
    except Exception:
        logger.exception("Failed to remove orphaned upload %s", path)


def describe_task(task: Task, tz_name: str, rng: random.Random | None = None) -> TaskCardView:
    classification = classify_task(task.status, task.consecutive_missed_days)
    nag = pick_nag_message(task.consecutive_missed_days, rng) if rng is not None else None
    return TaskCardView(
        task_id=task.id,
        title=task.title,
        description=task.description,
        label=classification.label,
        start_local=format_for_display(task.start_time, tz_name, DisplayKind.TIME),
        duration=(
            format_duration(task.total_time_minutes) if task.total_time_minutes is not None else None
        ),
        has_photo=bool(task.image_path),
        nag=None if task.is_completed else nag,
        can_complete=not task.is_completed,
    )
