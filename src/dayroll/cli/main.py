# src/dayroll/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, runs the start-of-session pass
(carry-forward + today's list), then hands over to the console REPL.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..core.errors import PersistenceReadError
from ..logging_setup import setup_logging
from ..tasks.task_api import open_session
from .commands import render_tasks
from .console import run_console_loop

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/dayroll")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "dayroll"))

    state = create_initial_state(settings=settings)

    if state.user_id:
        try:
            view = asyncio.run(open_session(state, state.user_id))
            logger.info(
                "Session opened tz=%s today=%s tasks=%d rolled=%d",
                view.context.timezone,
                view.context.today,
                len(view.tasks),
                view.rollover.rolled,
            )
            print(render_tasks(state, view.context, view.context.today, view.tasks))
        except PersistenceReadError as e:
            print(f"Error: could not load today's tasks ({e})")
    else:
        logger.info("No DAYROLL_USER_ID set; running signed out.")

    try:
        run_console_loop(state)
    finally:
        close = getattr(state.task_store, "close", None)
        if close is not None:
            close()
        logger.info("Bye.")


if __name__ == "__main__":
    main()
