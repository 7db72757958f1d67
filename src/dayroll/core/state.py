# src/dayroll/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from .ports import ObjectStorage, ProfileRepo, TaskRepo


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    task_store: TaskRepo
    profiles: ProfileRepo
    objects: ObjectStorage

    # Console identity; None means "not signed in".
    user_id: str | None = None
