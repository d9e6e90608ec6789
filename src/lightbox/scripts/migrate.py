# src/lightbox/scripts/migrate.py
"""Upgrade the configured database to the latest Alembic revision."""
from __future__ import annotations

import os

from alembic import command
from alembic.config import Config

from lightbox.core.settings import settings

MIGRATIONS_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations")
)


def alembic_config() -> Config:
    """Build an Alembic config pointing at the project's migrations folder."""
    cfg = Config(os.path.join(MIGRATIONS_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", MIGRATIONS_DIR)
    cfg.set_main_option("sqlalchemy.url", settings.effective_database_url)
    return cfg


def run_upgrade_head() -> None:
    command.upgrade(alembic_config(), "head")


if __name__ == "__main__":
    run_upgrade_head()
