"""Create the configured Postgres database, and optionally its tables."""
from __future__ import annotations

import argparse
import logging
import sys
from urllib.parse import urlsplit, urlunsplit

import psycopg
from psycopg import sql

from lightbox.core.settings import settings

logger = logging.getLogger("lightbox.ensure_db")


def to_libpq_url(url: str) -> str:
    """Strip quotes and any SQLAlchemy driver suffix (``postgresql+psycopg``)."""
    url = (url or "").strip().strip("'\"")
    if not url:
        raise ValueError("DATABASE_URL is empty")
    parts = urlsplit(url)
    scheme = parts.scheme.split("+", 1)[0]
    if scheme == "postgres":
        scheme = "postgresql"
    return urlunsplit((scheme, parts.netloc, parts.path, parts.query, parts.fragment))


def maintenance_target(url: str) -> tuple[str, str]:
    """Return ``(maintenance_url, database_name)`` for a Postgres URL."""
    parts = urlsplit(to_libpq_url(url))
    if parts.scheme != "postgresql":
        raise ValueError(f"Not a Postgres URL: {url!r}")
    database = parts.path.lstrip("/") or "postgres"
    maintenance = urlunsplit(("postgresql", parts.netloc, "/postgres", parts.query, ""))
    return maintenance, database


def ensure_database_exists(url: str) -> bool:
    """Create the database named in ``url`` if missing. Returns True if created."""
    maintenance, database = maintenance_target(url)
    with psycopg.connect(maintenance, autocommit=True) as conn, conn.cursor() as cur:
        cur.execute("SELECT 1 FROM pg_database WHERE datname = %s", (database,))
        if cur.fetchone() is not None:
            logger.info("Database %s already exists", database)
            return False
        cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(database)))
    logger.info("Created database %s", database)
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Ensure the configured database exists")
    parser.add_argument(
        "--url",
        default=None,
        help="Override database URL (defaults to the effective settings URL)",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create any missing tables from the ORM models afterwards.",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="[ensure_db] %(message)s")

    url = args.url or settings.effective_database_url
    try:
        if url.startswith("sqlite"):
            logger.info("SQLite database; nothing to create")
        else:
            ensure_database_exists(url)
        if args.create_tables:
            from lightbox.db.session import create_tables

            create_tables()
            logger.info("Tables created")
    except (ValueError, psycopg.Error) as exc:
        logger.error("%s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
