"""Database engine, sessions and time helpers."""
