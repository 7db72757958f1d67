# src/dayroll/core/context.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from ..tasks.timezone import local_today, start_of_today, start_of_tomorrow


@dataclass(slots=True, frozen=True)
class SessionContext:
    """
    Everything one operation needs to know about "who" and "when".

    Built once per session/pass and passed explicitly; never stored globally.
    `user_id` is None when nobody is signed in.
    """

    user_id: str | None
    timezone: str
    now: datetime

    @property
    def today(self) -> date:
        return local_today(self.timezone, self.now)

    @property
    def day_start(self) -> datetime:
        return start_of_today(self.timezone, self.now)

    @property
    def day_end(self) -> datetime:
        return start_of_tomorrow(self.timezone, self.now)
