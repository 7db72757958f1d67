# src/dayroll/cli/commands.py

from __future__ import annotations

import asyncio
import inspect
import logging
import random
from collections.abc import Callable
from datetime import date, datetime, time
from pathlib import Path
from typing import cast

from ..core.context import SessionContext
from ..core.errors import AuthenticationMissing, DayrollError
from ..core.state import AppState
from ..tasks.carry_forward import run_carry_forward
from ..tasks.task_api import (
    TaskCardView,
    build_context,
    complete_task,
    create_task,
    describe_task,
    fetch_tasks_for_day,
)
from ..tasks.task_models import Task
from ..tasks.timezone import is_valid_timezone, local_to_utc, utc_to_local_input

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /today, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except AuthenticationMissing:
            return "Not signed in. Set DAYROLL_USER_ID to use task commands."
        except DayrollError as e:
            logger.info("/%s failed: %s", name, e)
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _nag_rng(state: AppState) -> random.Random:
    return random.Random(getattr(state.settings, "nag_seed", None))


def format_task_line(view: TaskCardView) -> str:
    parts = [f"#{view.task_id}", view.start_local, view.title, f"[{view.label}]"]
    if view.duration:
        parts.append(f"took {view.duration}")
    if view.has_photo:
        parts.append("(photo)")
    line = "  ".join(parts)
    if view.nag:
        line += f"\n      {view.nag}"
    return line


def render_day(state: AppState, day: date | None = None) -> str:
    ctx = build_context(state, state.user_id)
    if not ctx.user_id:
        raise AuthenticationMissing("no user")
    target = day or ctx.today
    return render_tasks(state, ctx, target, fetch_tasks_for_day(state, ctx, target))


def render_tasks(state: AppState, ctx: SessionContext, target: date, tasks: list[Task]) -> str:
    count = f"{len(tasks)} task{'s' if len(tasks) != 1 else ''}"
    header = f"{target:%A, %b} {target.day} ({ctx.timezone}) - {count}"
    if not tasks:
        return header + "\n  No tasks. Use /add HH:MM title to create one."
    rng = _nag_rng(state)
    lines = [header]
    for task in tasks:
        lines.append("  " + format_task_line(describe_task(task, ctx.timezone, rng)))
    return "\n".join(lines)


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_today(state: AppState, args: list[str]) -> str:
    return render_day(state)


def cmd_day(state: AppState, args: list[str]) -> str:
    """/day YYYY-MM-DD -> tasks of another day (history)."""
    if not args:
        return "Usage: /day YYYY-MM-DD"
    try:
        day = date.fromisoformat(args[0])
    except ValueError:
        return f"Not a date: {args[0]}"
    return render_day(state, day)


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add HH:MM title...              -> today at HH:MM (local)
    /add YYYY-MM-DDTHH:MM title...   -> that local day/time
    """
    if len(args) < 2:
        return "Usage: /add HH:MM title  (or /add YYYY-MM-DDTHH:MM title)"

    ctx = build_context(state, state.user_id)
    when_raw = args[0]
    title = " ".join(args[1:])

    if "T" in when_raw:
        local_start: str | datetime = when_raw
    else:
        try:
            clock = time.fromisoformat(when_raw)
        except ValueError:
            return f"Not a time: {when_raw}"
        local_start = datetime.combine(ctx.today, clock)

    task_id = create_task(state, ctx, title=title, local_start=local_start)
    return f"Task #{task_id} added."


def cmd_done(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /done <id>                              -> completed now
    /done <id> YYYY-MM-DDTHH:MM             -> completed at that local time
    /done <id> [YYYY-MM-DDTHH:MM] <photo>   -> with a completion photo
    """
    if not args:
        return "Usage: /done <id> [YYYY-MM-DDTHH:MM] [photo-path]"
    try:
        task_id = int(args[0].lstrip("#"))
    except ValueError:
        return f"Not a task id: {args[0]}"

    ctx = build_context(state, state.user_id)
    rest = args[1:]
    completed_at = utc_to_local_input(ctx.now, ctx.timezone)
    if rest:
        try:
            local_to_utc(rest[0], ctx.timezone)
        except ValueError:
            pass  # not a timestamp: treat it as the photo path
        else:
            completed_at = rest.pop(0)

    image: bytes | None = None
    image_name: str | None = None
    if rest:
        photo = Path(rest[0]).expanduser()
        try:
            image = photo.read_bytes()
        except OSError as e:
            return f"Could not read photo {photo}: {e.strerror or e}"
        image_name = photo.name
        if emit:
            emit(f"Uploading {photo.name}...")

    result = complete_task(
        state,
        ctx,
        task_id,
        completed_at=completed_at,
        image=image,
        image_name=image_name,
    )
    return f"Task #{result.task_id} completed. {result.message}"


def cmd_tz(state: AppState, args: list[str]) -> str:
    """
    /tz         -> show current timezone
    /tz <zone>  -> set profile timezone (IANA id, e.g. Asia/Kolkata)
    """
    ctx = build_context(state, state.user_id)
    if not args:
        return f"Timezone: {ctx.timezone}"
    if not ctx.user_id:
        raise AuthenticationMissing("no user")
    tz_name = args[0]
    if not is_valid_timezone(tz_name):
        return f"Unknown timezone: {tz_name}"
    state.profiles.set_timezone(ctx.user_id, tz_name)
    return f"Timezone set to {tz_name}."


def cmd_sync(state: AppState, args: list[str]) -> str:
    """Re-run the carry-forward pass (e.g. after midnight)."""
    ctx = build_context(state, state.user_id)
    if not ctx.user_id:
        raise AuthenticationMissing("no user")
    report = asyncio.run(run_carry_forward(state.task_store, ctx))
    return (
        f"Carry-forward: rolled={report.rolled} conflicts={report.conflicts} "
        f"failed={report.failed}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("today", cmd_today, help_text="List today's tasks.", aliases=["ls"])
registry.register("day", cmd_day, help_text="List tasks of a day: /day YYYY-MM-DD.")
registry.register("add", cmd_add, help_text="Add a task: /add HH:MM title.")
registry.register(
    "done", cmd_done, help_text="Complete a task: /done <id> [YYYY-MM-DDTHH:MM] [photo]."
)
registry.register("tz", cmd_tz, help_text="Show or set timezone: /tz [Area/City].")
registry.register("sync", cmd_sync, help_text="Roll overdue tasks forward to today.")
