"""Statistics used by post-event validation (pure functions, no I/O)."""
