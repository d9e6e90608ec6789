# src/lightbox/api/v1/endpoints/public.py
"""Unauthenticated read endpoints used by the public site."""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from lightbox.models import Page, SiteSetting, Story
from lightbox.schemas.media import MediaResponse
from lightbox.schemas.site import (
    HomeResponse,
    PageEnvelope,
    PageResponse,
    SettingEnvelope,
    SettingResponse,
)
from lightbox.schemas.story import StoryDetail, StoryResponse
from lightbox.services import ordering
from lightbox.services.ordering import CollectionName

from ..dependencies import SessionDep
from .stories import story_detail

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/home", response_model=HomeResponse)
async def get_home(db: SessionDep) -> HomeResponse:
    """Everything the landing page shows, each list in display order."""
    masthead = ordering.list_ordered(db, CollectionName.MASTHEAD)
    featured_media = ordering.list_ordered(db, CollectionName.FEATURED_MEDIA)
    featured_stories = ordering.list_ordered(db, CollectionName.FEATURED_STORIES)
    return HomeResponse(
        masthead=[MediaResponse.model_validate(m) for m in masthead],
        featured_media=[MediaResponse.model_validate(m) for m in featured_media],
        featured_stories=[StoryResponse.model_validate(s) for s in featured_stories],
    )


@router.get("/stories/{slug}", response_model=StoryDetail)
async def get_public_story(slug: str, db: SessionDep) -> StoryDetail:
    story = db.execute(select(Story).where(Story.slug == slug)).scalar_one_or_none()
    if story is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Story not found")
    return story_detail(db, story)


@router.get("/pages/{slug}", response_model=PageEnvelope)
async def get_public_page(slug: str, db: SessionDep) -> PageEnvelope:
    page = db.get(Page, slug)
    if page is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page not found")
    return PageEnvelope(page=PageResponse.model_validate(page))


@router.get("/settings/{key}", response_model=SettingEnvelope)
async def get_public_setting(key: str, db: SessionDep) -> SettingEnvelope:
    setting = db.get(SiteSetting, key)
    if setting is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Setting not found")
    return SettingEnvelope(setting=SettingResponse.model_validate(setting))
