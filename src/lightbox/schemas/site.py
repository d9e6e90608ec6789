"""Site settings and page schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .media import MediaResponse
from .story import StoryResponse


class SettingUpdate(BaseModel):
    """Upsert a site setting; ``value`` may be any JSON value."""

    key: str = Field(..., min_length=1, max_length=255)
    value: Any = Field(...)


class SettingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    value: Any
    updated_at: datetime


class SettingEnvelope(BaseModel):
    setting: SettingResponse | None


class PageUpdate(BaseModel):
    """Upsert a page by slug."""

    slug: str = Field(..., min_length=1, max_length=255)
    content: str
    profile_image_public_id: str | None = None


class PageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    slug: str
    content: str
    profile_image_public_id: str | None
    updated_at: datetime


class PageEnvelope(BaseModel):
    page: PageResponse | None


class HomeResponse(BaseModel):
    """Everything the public landing page renders, each list in display order."""

    masthead: list[MediaResponse]
    featured_media: list[MediaResponse]
    featured_stories: list[StoryResponse]


class TableStatus(BaseModel):
    """Comparison of declared tables against those present in the database."""

    existing: list[str]
    expected: list[str]
    missing: list[str]
    extra: list[str]
    all_present: bool
