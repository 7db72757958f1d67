"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus)
- task_store.py: SQLite-backed storage + query/update helpers
- timezone.py: user timezone resolution and local/UTC conversions
- duration.py: elapsed minutes between instants + human labels
- classifier.py: display classification by status and missed days
- carry_forward.py: daily rollover of overdue pending tasks
- task_api.py: high-level session/completion helpers used by connectors
"""
