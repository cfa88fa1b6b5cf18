"""Process-level wiring (database engine)."""
