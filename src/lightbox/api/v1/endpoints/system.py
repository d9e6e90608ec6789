# src/lightbox/api/v1/endpoints/system.py
"""System endpoints: schema status and initialisation."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from sqlalchemy.orm import Session

from lightbox.core.settings import settings
from lightbox.db.session import Base, existing_table_names, expected_table_names
from lightbox.schemas.site import TableStatus

from ..dependencies import AdminDep, SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/system", tags=["system"])


def _table_status(db: Session) -> TableStatus:
    existing = existing_table_names(db)
    expected = expected_table_names()
    missing = [name for name in expected if name not in existing]
    extra = [name for name in existing if name not in expected]
    return TableStatus(
        existing=existing,
        expected=expected,
        missing=missing,
        extra=extra,
        all_present=not missing,
    )


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of runtime configuration.

    Excludes secrets and connection strings.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "auth": {
            "admin_auth_enabled": settings.admin_auth_enabled,
            "jwt_algorithm": settings.jwt_algorithm,
        },
        "image_host": {
            "configured": settings.image_host_configured,
            "cloud_name": settings.cloudinary_cloud_name,
        },
    }


@router.get("/tables", response_model=TableStatus)
async def get_tables(db: SessionDep) -> TableStatus:
    """Compare the tables the models declare with those in the database."""
    return _table_status(db)


@router.post("/init", response_model=TableStatus)
async def init_tables(db: SessionDep, _admin: AdminDep) -> TableStatus:
    """Create any missing tables. Existing tables and rows are left alone.

    Returns:
        The table status after creation.
    """
    Base.metadata.create_all(bind=db.get_bind())
    status_after = _table_status(db)
    logger.info("Schema initialised; %d tables present", len(status_after.existing))
    return status_after
