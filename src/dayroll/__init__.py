"""
dayroll: daily task tracking with timezone-aware carry-forward.

Subpackages:
- core: ports (Protocols), errors, session context, app state
- tasks: models, SQLite store, timezone/duration helpers, carry-forward engine
- profiles: per-user timezone storage
- storage: local object storage for completion photos
- cli: console entrypoint and slash commands
"""

__version__ = "0.1.0"
