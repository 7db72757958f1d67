# tests/test_duration_and_classifier.py

from __future__ import annotations

import random
from datetime import datetime

import pytest

from dayroll.core.errors import ValidationError
from dayroll.tasks.classifier import (
    NAG_MESSAGES,
    ClassificationKind,
    classify_task,
    pick_nag_message,
)
from dayroll.tasks.duration import compute_duration, format_duration
from dayroll.tasks.task_models import TaskStatus

from .fakes import utc


def test_duration_of_completed_task() -> None:
    minutes = compute_duration(utc(2025, 1, 10, 9, 0), utc(2025, 1, 10, 10, 15))
    assert minutes == 75
    assert format_duration(minutes) == "1h 15m"


def test_duration_floors_partial_minutes_and_allows_zero() -> None:
    assert compute_duration(utc(2025, 1, 10, 9, 0, 0), utc(2025, 1, 10, 9, 0, 59)) == 0
    assert compute_duration(utc(2025, 1, 10, 9, 0, 0), utc(2025, 1, 10, 9, 2, 30)) == 2


def test_duration_is_wall_clock_independent_across_dst() -> None:
    # 01:00 EST -> 04:00 EDT on spring-forward day is only 2 real hours.
    assert compute_duration(utc(2025, 3, 9, 6, 0), utc(2025, 3, 9, 8, 0)) == 120


def test_duration_rejects_end_before_start() -> None:
    with pytest.raises(ValidationError):
        compute_duration(utc(2025, 1, 10, 10, 0), utc(2025, 1, 10, 9, 59))


def test_duration_rejects_naive_instants() -> None:
    with pytest.raises(ValidationError):
        compute_duration(datetime(2025, 1, 10, 9, 0), utc(2025, 1, 10, 10, 0))


@pytest.mark.parametrize(
    ("minutes", "label"),
    [(0, "0m"), (59, "59m"), (60, "1h"), (61, "1h 1m"), (150, "2h 30m"), (1440, "24h")],
)
def test_format_duration(minutes: int, label: str) -> None:
    assert format_duration(minutes) == label


def test_format_duration_rejects_negative() -> None:
    with pytest.raises(ValidationError):
        format_duration(-1)


@pytest.mark.parametrize(
    ("status", "missed", "kind", "label"),
    [
        (TaskStatus.PENDING, 0, ClassificationKind.PENDING, "Pending"),
        (TaskStatus.PENDING, 1, ClassificationKind.CARRIED, "Carried 1 day"),
        (TaskStatus.PENDING, 2, ClassificationKind.CARRIED, "Carried 2 days"),
        (TaskStatus.PENDING, 3, ClassificationKind.OVERDUE, "Overdue 3 days"),
        (TaskStatus.PENDING, 10, ClassificationKind.OVERDUE, "Overdue 10 days"),
        (TaskStatus.COMPLETED, 0, ClassificationKind.COMPLETED, "Completed"),
        (TaskStatus.COMPLETED, 7, ClassificationKind.COMPLETED, "Completed"),
    ],
)
def test_classification_boundaries(status, missed, kind, label) -> None:
    c = classify_task(status, missed)
    assert c.kind == kind
    assert c.label == label


def test_classification_accepts_raw_status_strings() -> None:
    assert classify_task("completed", 5).kind == ClassificationKind.COMPLETED
    assert classify_task("pending", 4).missed_days == 4


def test_nag_message_only_for_long_overdue_and_seeded() -> None:
    assert pick_nag_message(2, random.Random(1)) is None

    first = pick_nag_message(3, random.Random(42))
    second = pick_nag_message(3, random.Random(42))
    assert first is not None
    assert first == second
    assert first in NAG_MESSAGES
