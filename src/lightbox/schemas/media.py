"""Media-related Pydantic schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from lightbox.services.ordering import Direction

MediaCollection = Literal["masthead", "featured"]


class MediaCreate(BaseModel):
    """Schema for registering an image already uploaded to the image host."""

    cloudinary_public_id: str = Field(..., min_length=1, max_length=255)
    cloudinary_url: str | None = Field(default=None, min_length=1)
    caption: str | None = None
    exif_data: dict[str, Any] | None = None
    iptc_data: dict[str, Any] | None = None
    all_metadata: dict[str, Any] | None = None
    is_featured: bool = False
    is_masthead: bool = False
    story_id: int | None = None


class MediaUpdate(BaseModel):
    """Partial update for a media item; unset fields are left alone."""

    caption: str | None = None
    is_featured: bool | None = None
    is_masthead: bool | None = None
    story_id: int | None = None


class MediaBatchUpdate(BaseModel):
    """Apply the same update to several media items."""

    ids: list[int] = Field(..., min_length=1)
    updates: MediaUpdate


class MediaReorderRequest(BaseModel):
    """Full ordering of the masthead or featured collection."""

    type: MediaCollection
    media_ids: list[int] = Field(..., min_length=1)


class MediaMoveRequest(BaseModel):
    """Move one media item a single place within a collection."""

    type: MediaCollection
    direction: Direction


class MediaResponse(BaseModel):
    """Schema for media information returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    cloudinary_public_id: str
    cloudinary_url: str
    caption: str | None
    exif_data: dict[str, Any] | None
    iptc_data: dict[str, Any] | None
    all_metadata: dict[str, Any] | None
    is_featured: bool
    is_masthead: bool
    masthead_order: int | None
    featured_order: int | None
    story_id: int | None
    created_at: datetime
    updated_at: datetime


class MediaEnvelope(BaseModel):
    media: MediaResponse


class MediaListEnvelope(BaseModel):
    media: list[MediaResponse]


class MediaDimensions(BaseModel):
    """Image host dimensions for one media item; ``error`` set on lookup failure."""

    id: int
    public_id: str
    width: int | None = None
    height: int | None = None
    aspect_ratio: float | None = None
    format: str | None = None
    error: str | None = None


class MediaDimensionsEnvelope(BaseModel):
    media: list[MediaDimensions]
