"""Core wiring: ports, errors, session context and application state."""
