# src/dayroll/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Every path lives under a gitignored local data dir by default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "DAYROLL"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Local .env never overrides variables already set in the environment.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Identity / time ----
    user_id: Optional[str]
    default_timezone: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path
    images_dir: Path

    # ---- Presentation ----
    nag_seed: Optional[int]

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "dayroll") or "dayroll"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        user_id = _env(_k("USER_ID"), "").strip() or None
        default_timezone = _env(_k("DEFAULT_TIMEZONE"), "UTC").strip() or "UTC"

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/dayroll"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        images_dir = _env_path(_k("IMAGES_DIR"), data_dir / "task-images")

        nag_seed = _env_optional_int(_k("NAG_SEED"))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            user_id=user_id,
            default_timezone=default_timezone,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            images_dir=images_dir,
            nag_seed=nag_seed,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
