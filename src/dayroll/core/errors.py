# src/dayroll/core/errors.py

from __future__ import annotations

"""
Error kinds raised across the app.

Propagation policy:
- reconciliation (carry-forward) failures are logged and never reach the caller,
- day-list fetch failures surface to the caller (shown as an error line),
- completion failures abort that single action and surface to the caller.
"""


class DayrollError(Exception):
    """Base class for all app-level errors."""


class AuthenticationMissing(DayrollError):
    """No identified user for an operation that needs one."""


class PersistenceError(DayrollError):
    """Task/profile store failure."""


class PersistenceReadError(PersistenceError):
    pass


class PersistenceWriteError(PersistenceError):
    pass


class ValidationError(DayrollError):
    """Rejected input (e.g. completion earlier than the scheduled start)."""


class UploadError(DayrollError):
    """Completion photo could not be stored."""
