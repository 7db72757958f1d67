# src/dayroll/tasks/classifier.py

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum

from .task_models import TaskStatus

OVERDUE_THRESHOLD = 3

NAG_MESSAGES: tuple[str, ...] = (
    "3 days? Too lazy or too legendary?",
    "Your task is crying... finish it.",
    "Even your alarm gave up on you!",
    "3 days later... still waiting.",
    "This task has trust issues now.",
)


class ClassificationKind(str, Enum):
    COMPLETED = "completed"
    OVERDUE = "overdue"
    CARRIED = "carried"
    PENDING = "pending"


@dataclass(slots=True, frozen=True)
class TaskClassification:
    kind: ClassificationKind
    missed_days: int = 0

    @property
    def label(self) -> str:
        n = self.missed_days
        if self.kind == ClassificationKind.COMPLETED:
            return "Completed"
        if self.kind == ClassificationKind.OVERDUE:
            return f"Overdue {n} days"
        if self.kind == ClassificationKind.CARRIED:
            return f"Carried {n} day{'s' if n > 1 else ''}"
        return "Pending"


def classify_task(status: TaskStatus | str, missed_days: int) -> TaskClassification:
    """
    completed            -> Completed (missed days ignored)
    pending, n >= 3      -> Overdue(n)
    pending, 1 <= n <= 2 -> Carried(n)
    pending, n == 0      -> Pending
    """
    if TaskStatus.from_db(str(status)) == TaskStatus.COMPLETED:
        return TaskClassification(ClassificationKind.COMPLETED, max(0, missed_days))
    if missed_days >= OVERDUE_THRESHOLD:
        return TaskClassification(ClassificationKind.OVERDUE, missed_days)
    if missed_days >= 1:
        return TaskClassification(ClassificationKind.CARRIED, missed_days)
    return TaskClassification(ClassificationKind.PENDING, 0)


def pick_nag_message(missed_days: int, rng: random.Random) -> str | None:
    """Flavor text for long-overdue tasks; deterministic for a seeded rng."""
    if missed_days < OVERDUE_THRESHOLD:
        return None
    return rng.choice(NAG_MESSAGES)
