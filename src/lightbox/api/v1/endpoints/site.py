# src/lightbox/api/v1/endpoints/site.py
"""Site settings and page endpoints for the Lightbox admin API."""

from fastapi import APIRouter, HTTPException, status

from lightbox.core.settings import settings
from lightbox.models import Page, SiteSetting
from lightbox.schemas.site import (
    PageEnvelope,
    PageResponse,
    PageUpdate,
    SettingEnvelope,
    SettingResponse,
    SettingUpdate,
)

from ..dependencies import AdminDep, SessionDep

router = APIRouter(tags=["site"])


@router.get("/settings", response_model=SettingEnvelope)
async def get_setting(
    db: SessionDep,
    _admin: AdminDep,
    key: str | None = None,
) -> SettingEnvelope:
    """Return one setting by key, or ``null`` when it has never been written."""
    if not key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Key is required")
    setting = db.get(SiteSetting, key)
    return SettingEnvelope(
        setting=SettingResponse.model_validate(setting) if setting else None
    )


@router.put("/settings", response_model=SettingEnvelope)
async def put_setting(
    body: SettingUpdate,
    db: SessionDep,
    _admin: AdminDep,
) -> SettingEnvelope:
    """Create or replace a setting."""
    setting = db.get(SiteSetting, body.key)
    if setting is None:
        setting = SiteSetting(key=body.key, value=body.value)
        db.add(setting)
    else:
        setting.value = body.value
    db.commit()
    db.refresh(setting)
    return SettingEnvelope(setting=SettingResponse.model_validate(setting))


@router.get("/pages", response_model=PageEnvelope)
async def get_page(
    db: SessionDep,
    _admin: AdminDep,
    slug: str | None = None,
) -> PageEnvelope:
    """Return a page by slug; defaults to the about page."""
    page = db.get(Page, slug or settings.default_page_slug)
    return PageEnvelope(page=PageResponse.model_validate(page) if page else None)


@router.put("/pages", response_model=PageEnvelope)
async def put_page(body: PageUpdate, db: SessionDep, _admin: AdminDep) -> PageEnvelope:
    """Create or replace a page's content and profile image."""
    page = db.get(Page, body.slug)
    if page is None:
        page = Page(slug=body.slug)
        db.add(page)
    page.content = body.content
    page.profile_image_public_id = body.profile_image_public_id
    db.commit()
    db.refresh(page)
    return PageEnvelope(page=PageResponse.model_validate(page))
