"""Operational scripts for database management."""
