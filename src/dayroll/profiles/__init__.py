"""User profile storage (timezone preference)."""
