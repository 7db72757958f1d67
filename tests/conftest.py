# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from dayroll.core.state import AppState
from dayroll.profiles.profile_store import ProfileStore
from dayroll.storage.object_store import LocalObjectStore
from dayroll.tasks.task_store import TaskStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="dayroll-test",
        log_level="DEBUG",
        user_id="u1",
        default_timezone="UTC",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        images_dir=tmp_path / "task-images",
        nag_seed=7,
    )


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState wired with real local stores.

    NOTE: We keep real SQLite/filesystem stores here because their
    conditional-update behaviour is part of what we want to test.
    """
    return AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_db_path),
        profiles=ProfileStore(settings.tasks_db_path),
        objects=LocalObjectStore(settings.images_dir),
        user_id=settings.user_id,
    )
