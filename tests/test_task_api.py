# tests/test_task_api.py

from __future__ import annotations

import random
import re
from dataclasses import replace
from datetime import date

import pytest

from dayroll.core.errors import (
    AuthenticationMissing,
    PersistenceReadError,
    PersistenceWriteError,
    UploadError,
    ValidationError,
)
from dayroll.tasks.task_api import (
    build_context,
    complete_task,
    create_task,
    describe_task,
    fetch_tasks_for_day,
    open_session,
)
from dayroll.tasks.task_models import TaskStatus

from .fakes import FailingWriteStore, FakeObjectStorage, FakeTaskRepo, utc

KOLKATA = "Asia/Kolkata"


def _seed_overdue(state) -> int:
    return state.task_store.add_task(
        user_id="u1",
        title="Evening walk",
        start_time=utc(2025, 1, 10, 13, 30),
        task_date=date(2025, 1, 10),
    )


@pytest.mark.asyncio
async def test_open_session_rolls_forward_and_lists_today(state) -> None:
    state.profiles.set_timezone("u1", KOLKATA)
    task_id = _seed_overdue(state)

    view = await open_session(state, "u1", now=utc(2025, 1, 13, 6, 0))

    assert view.context.timezone == KOLKATA
    assert view.context.today == date(2025, 1, 13)
    assert view.rollover.rolled == 1
    assert [t.id for t in view.tasks] == [task_id]

    task = view.tasks[0]
    assert task.task_date == date(2025, 1, 13)
    assert task.start_time == utc(2025, 1, 13, 13, 30)
    assert task.consecutive_missed_days == 3

    card = describe_task(task, KOLKATA)
    assert card.label == "Overdue 3 days"
    assert card.start_local == "7:00 PM"
    assert card.nag is None


@pytest.mark.asyncio
async def test_open_session_twice_same_day_is_stable(state) -> None:
    state.profiles.set_timezone("u1", KOLKATA)
    _seed_overdue(state)

    first = await open_session(state, "u1", now=utc(2025, 1, 13, 6, 0))
    second = await open_session(state, "u1", now=utc(2025, 1, 13, 16, 0))

    assert second.rollover.attempted == 0
    assert second.tasks == first.tasks


@pytest.mark.asyncio
async def test_current_task_is_not_mutated(state) -> None:
    state.profiles.set_timezone("u1", KOLKATA)
    task_id = state.task_store.add_task(
        user_id="u1", title="today", start_time=utc(2025, 1, 13, 4, 0), task_date=date(2025, 1, 13)
    )
    before = state.task_store.get_task(task_id)

    view = await open_session(state, "u1", now=utc(2025, 1, 13, 6, 0))

    assert view.rollover.attempted == 0
    assert state.task_store.get_task(task_id) == before


@pytest.mark.asyncio
async def test_open_session_signed_out_reads_nothing(state) -> None:
    repo = FakeTaskRepo([])
    repo.fail_reads = True
    state.task_store = repo

    view = await open_session(state, None, now=utc(2025, 1, 13, 6, 0))

    assert view.rollover.skipped is True
    assert view.tasks == []


@pytest.mark.asyncio
async def test_fetch_failure_surfaces(state) -> None:
    repo = FakeTaskRepo([])
    repo.fail_reads = True
    state.task_store = repo

    with pytest.raises(PersistenceReadError):
        await open_session(state, "u1", now=utc(2025, 1, 13, 6, 0))


def test_invalid_profile_timezone_falls_back_to_default(state) -> None:
    state.profiles.set_timezone("u1", "Not/AZone")
    ctx = build_context(state, "u1", now=utc(2025, 1, 13, 6, 0))
    assert ctx.timezone == "UTC"


@pytest.mark.asyncio
async def test_zone_directory_in_profile_falls_back_and_session_opens(state) -> None:
    _seed_overdue(state)
    state.profiles.set_timezone("u1", "America")

    ctx = build_context(state, "u1", now=utc(2025, 1, 13, 6, 0))
    assert ctx.timezone == "UTC"

    view = await open_session(state, "u1", now=utc(2025, 1, 13, 6, 0))
    assert view.context.timezone == "UTC"
    assert view.rollover.rolled == 1
    assert [t.title for t in view.tasks] == ["Evening walk"]


def test_create_task_uses_local_day(state) -> None:
    state.profiles.set_timezone("u1", KOLKATA)
    ctx = build_context(state, "u1", now=utc(2025, 1, 13, 6, 0))

    # 01:00 local on Jan 14 is still Jan 13 in UTC.
    task_id = create_task(state, ctx, title="Early run", local_start="2025-01-14T01:00")

    task = state.task_store.get_task(task_id)
    assert task is not None
    assert task.start_time == utc(2025, 1, 13, 19, 30)
    assert task.task_date == date(2025, 1, 14)
    assert task.consecutive_missed_days == 0


def test_create_task_requires_user_and_title(state) -> None:
    ctx = build_context(state, None, now=utc(2025, 1, 13, 6, 0))
    with pytest.raises(AuthenticationMissing):
        create_task(state, ctx, title="x", local_start="2025-01-13T10:00")

    ctx = build_context(state, "u1", now=utc(2025, 1, 13, 6, 0))
    with pytest.raises(ValidationError):
        create_task(state, ctx, title="  ", local_start="2025-01-13T10:00")
    with pytest.raises(ValidationError):
        create_task(state, ctx, title="x", local_start="tomorrow-ish")


def test_complete_task_records_duration(state) -> None:
    ctx = build_context(state, "u1", now=utc(2025, 1, 10, 12, 0))
    task_id = state.task_store.add_task(
        user_id="u1", title="Read", start_time=utc(2025, 1, 10, 9, 0), task_date=date(2025, 1, 10)
    )

    result = complete_task(state, ctx, task_id, completed_at="2025-01-10T10:15")

    assert result.total_time_minutes == 75
    assert result.message == "Great job! You took 1h 15m."
    task = state.task_store.get_task(task_id)
    assert task is not None
    assert task.status == TaskStatus.COMPLETED
    assert task.end_time == utc(2025, 1, 10, 10, 15)
    assert task.total_time_minutes == 75
    assert describe_task(task, "UTC").duration == "1h 15m"


def test_complete_before_start_fails_without_mutation(state) -> None:
    state.objects = FakeObjectStorage()
    ctx = build_context(state, "u1", now=utc(2025, 1, 10, 12, 0))
    task_id = state.task_store.add_task(
        user_id="u1", title="Read", start_time=utc(2025, 1, 10, 9, 0), task_date=date(2025, 1, 10)
    )
    before = state.task_store.get_task(task_id)

    with pytest.raises(ValidationError):
        complete_task(state, ctx, task_id, completed_at="2025-01-10T08:59", image=b"img", image_name="a.png")

    assert state.task_store.get_task(task_id) == before
    assert state.objects.blobs == {}


def test_complete_with_photo_stores_keyed_path(state) -> None:
    ctx = build_context(state, "u1", now=utc(2025, 1, 10, 12, 0))
    task_id = state.task_store.add_task(
        user_id="u1", title="Cook", start_time=utc(2025, 1, 10, 9, 0), task_date=date(2025, 1, 10)
    )

    result = complete_task(
        state, ctx, task_id, completed_at=utc(2025, 1, 10, 9, 30), image=b"\x89PNG", image_name="dinner.PNG"
    )

    assert result.image_path is not None
    assert re.fullmatch(rf"u1/{task_id}-completion-\d+\.png", result.image_path)
    assert (state.settings.images_dir / result.image_path).read_bytes() == b"\x89PNG"
    task = state.task_store.get_task(task_id)
    assert task is not None
    assert task.image_path == result.image_path
    assert describe_task(task, "UTC").has_photo is True


def test_upload_failure_leaves_task_pending(state) -> None:
    state.objects = FakeObjectStorage(fail=True)
    ctx = build_context(state, "u1", now=utc(2025, 1, 10, 12, 0))
    task_id = state.task_store.add_task(
        user_id="u1", title="Cook", start_time=utc(2025, 1, 10, 9, 0), task_date=date(2025, 1, 10)
    )

    with pytest.raises(UploadError):
        complete_task(state, ctx, task_id, completed_at="2025-01-10T09:30", image=b"x", image_name="a.jpg")

    task = state.task_store.get_task(task_id)
    assert task is not None
    assert task.status == TaskStatus.PENDING
    assert task.end_time is None


def test_write_failure_removes_uploaded_photo(state) -> None:
    objects = FakeObjectStorage()
    state.objects = objects
    state.task_store = FailingWriteStore(state.task_store)
    ctx = build_context(state, "u1", now=utc(2025, 1, 10, 12, 0))
    task_id = state.task_store.add_task(
        user_id="u1", title="Cook", start_time=utc(2025, 1, 10, 9, 0), task_date=date(2025, 1, 10)
    )

    with pytest.raises(PersistenceWriteError):
        complete_task(state, ctx, task_id, completed_at="2025-01-10T09:30", image=b"x", image_name="a.jpg")

    assert objects.blobs == {}


def test_complete_rejects_foreign_completed_and_signed_out(state) -> None:
    task_id = state.task_store.add_task(
        user_id="u2", title="theirs", start_time=utc(2025, 1, 10, 9, 0), task_date=date(2025, 1, 10)
    )
    ctx = build_context(state, "u1", now=utc(2025, 1, 10, 12, 0))
    with pytest.raises(ValidationError):
        complete_task(state, ctx, task_id, completed_at="2025-01-10T10:00")

    other_ctx = build_context(state, "u2", now=utc(2025, 1, 10, 12, 0))
    complete_task(state, other_ctx, task_id, completed_at="2025-01-10T10:00")
    with pytest.raises(ValidationError):
        complete_task(state, other_ctx, task_id, completed_at="2025-01-10T11:00")

    with pytest.raises(AuthenticationMissing):
        complete_task(state, build_context(state, None), task_id, completed_at="2025-01-10T10:00")


def test_fetch_tasks_for_history_day(state) -> None:
    ctx = build_context(state, "u1", now=utc(2025, 1, 13, 6, 0))
    state.task_store.add_task(
        user_id="u1", title="old", start_time=utc(2025, 1, 5, 9, 0), task_date=date(2025, 1, 5)
    )
    assert fetch_tasks_for_day(state, ctx) == []
    assert [t.title for t in fetch_tasks_for_day(state, ctx, date(2025, 1, 5))] == ["old"]


def test_describe_task_nag_only_for_pending(state) -> None:
    task_id = _seed_overdue(state)
    task = state.task_store.get_task(task_id)
    assert task is not None
    overdue = replace(task, consecutive_missed_days=4)

    assert describe_task(overdue, KOLKATA, random.Random(3)).nag is not None
    done = replace(overdue, status=TaskStatus.COMPLETED)
    card = describe_task(done, KOLKATA, random.Random(3))
    assert card.nag is None
    assert card.label == "Completed"
    assert card.can_complete is False
