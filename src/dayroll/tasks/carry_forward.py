# src/dayroll/tasks/carry_forward.py

from __future__ import annotations

"""
Carry-forward (daily rollover) of overdue pending tasks.

One reconciliation pass:
- selects pending tasks whose task_date is before the user's local today,
- moves each to today, keeping its local wall-clock start time,
- adds the number of missed calendar days to consecutive_missed_days.

Idempotent within a day: rolled tasks have task_date == today and are no
longer selected. Each row update is conditional on the values read for it,
so two sessions rolling the same task cannot double-count missed days.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime

from ..core.context import SessionContext
from ..core.ports import TaskRepo
from .task_models import Task, TaskStatus
from .timezone import get_zone

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RolloverUpdate:
    """
    All fields written for one task, plus the values it was computed from.

    The expected_* values guard the write: the store applies the update only
    if the row still holds them.
    """

    task_id: int
    expected_task_date: date
    expected_missed_days: int
    new_task_date: date
    new_start_time: datetime
    new_missed_days: int
    days_missed: int


@dataclass(slots=True)
class RolloverReport:
    rolled: int = 0
    conflicts: int = 0
    failed: int = 0
    skipped: bool = False

    @property
    def attempted(self) -> int:
        return self.rolled + self.conflicts + self.failed


def plan_rollover(task: Task, today: date, tz_name: str) -> RolloverUpdate:
    """
    Compute the rollover for one task. Pure: no I/O.

    The new start keeps the task's local time-of-day and uses the UTC offset
    in effect on `today`, so "7pm" stays 7pm across a DST change.
    """
    days_missed = (today - task.task_date).days
    if days_missed < 1:
        raise ValueError(
            f"task {task.id} is not overdue (task_date={task.task_date}, today={today})"
        )

    zone = get_zone(tz_name)
    local_clock = task.start_time.astimezone(zone).time().replace(tzinfo=None)
    new_local = datetime.combine(today, local_clock, tzinfo=zone)
    # Round-trip through UTC normalises wall-clock times that fall in a DST gap.
    new_start = new_local.astimezone(UTC)

    return RolloverUpdate(
        task_id=task.id,
        expected_task_date=task.task_date,
        expected_missed_days=task.consecutive_missed_days,
        new_task_date=today,
        new_start_time=new_start,
        new_missed_days=task.consecutive_missed_days + days_missed,
        days_missed=days_missed,
    )


async def _apply_one(repo: TaskRepo, update: RolloverUpdate) -> bool:
    return await asyncio.to_thread(repo.apply_rollover, update)


async def run_carry_forward(repo: TaskRepo, ctx: SessionContext) -> RolloverReport:
    """
    Run one reconciliation pass for ctx.user_id.

    Best-effort: read/write failures are logged, never raised. A task whose
    update failed keeps its stale task_date and is picked up by the next pass
    with days_missed recomputed from it.
    """
    report = RolloverReport()
    if not ctx.user_id:
        logger.debug("carry-forward skipped: no user")
        report.skipped = True
        return report

    today = ctx.today

    try:
        candidates = await asyncio.to_thread(repo.list_overdue_pending, ctx.user_id, today)
    except Exception:
        logger.exception("list_overdue_pending failed user=%s", ctx.user_id)
        return report

    updates: list[RolloverUpdate] = []
    for task in candidates:
        if task.status != TaskStatus.PENDING or task.task_date >= today:
            continue
        try:
            updates.append(plan_rollover(task, today, ctx.timezone))
        except Exception:
            logger.exception("plan_rollover failed task_id=%s", task.id)
            report.failed += 1

    if not updates:
        return report

    results = await asyncio.gather(
        *(_apply_one(repo, u) for u in updates),
        return_exceptions=True,
    )

    for update, result in zip(updates, results):
        if isinstance(result, BaseException):
            logger.error(
                "apply_rollover failed task_id=%s: %s",
                update.task_id,
                result,
                exc_info=result,
            )
            report.failed += 1
        elif result:
            report.rolled += 1
            logger.debug(
                "Task %s rolled %s -> %s (+%s missed, total=%s)",
                update.task_id,
                update.expected_task_date,
                update.new_task_date,
                update.days_missed,
                update.new_missed_days,
            )
        else:
            report.conflicts += 1
            logger.info("Task %s already rolled by another session", update.task_id)

    logger.info(
        "carry-forward user=%s today=%s rolled=%s conflicts=%s failed=%s",
        ctx.user_id,
        today,
        report.rolled,
        report.conflicts,
        report.failed,
    )
    return report
