# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Use .env (local, gitignored) for per-machine values.

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "DAYROLL_APP_NAME": "App display name (default: dayroll).",
    "DAYROLL_LOG_LEVEL": "Console logging level (default: INFO).",
    # Identity / time
    "DAYROLL_USER_ID": "User the console acts as (empty => signed out, task commands disabled).",
    "DAYROLL_DEFAULT_TIMEZONE": "IANA zone used when the profile has none (default: UTC).",
    # Paths (gitignored)
    "DAYROLL_DATA_DIR": "Local data directory (default: .local/dayroll).",
    "DAYROLL_TASKS_DB_PATH": "Task/profile SQLite path (default: <data_dir>/tasks.sqlite3).",
    "DAYROLL_IMAGES_DIR": "Completion photo storage root (default: <data_dir>/task-images).",
    # Presentation
    "DAYROLL_NAG_SEED": "Optional integer seed for overdue nag messages (unset => random).",
}
