# src/dayroll/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete stores into AppState (tasks/profiles/objects).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..profiles.profile_store import ProfileStore
from ..storage.object_store import LocalObjectStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.images_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    state = AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_db_path),
        profiles=ProfileStore(settings.tasks_db_path),
        objects=LocalObjectStore(settings.images_dir),
        user_id=getattr(settings, "user_id", None) or None,
    )
    logger.debug("AppState created user=%s", state.user_id)
    return state
