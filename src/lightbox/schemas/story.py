"""Story-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class StoryCreate(BaseModel):
    """Schema for creating a new story; the slug is derived from the title."""

    title: str = Field(..., min_length=1, max_length=255)
    year: int | None = None
    location: str | None = Field(None, max_length=255)
    narrative: str | None = Field(None, description="Markdown narrative")
    featured_image_public_id: str | None = None
    is_featured: bool = False


class StoryUpdate(BaseModel):
    """Partial update for a story; unset fields are left alone."""

    title: str | None = Field(None, min_length=1, max_length=255)
    year: int | None = None
    location: str | None = Field(None, max_length=255)
    narrative: str | None = None
    featured_image_public_id: str | None = None
    is_featured: bool | None = None


class StoryResponse(BaseModel):
    """Schema for story information returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    title: str
    year: int | None
    location: str | None
    narrative: str | None
    featured_image_public_id: str | None
    is_featured: bool
    featured_order: int | None
    created_at: datetime
    updated_at: datetime


class StoryImageCreate(BaseModel):
    """Attach an image to a story; omit ``order_index`` to append."""

    cloudinary_public_id: str = Field(..., min_length=1, max_length=255)
    caption: str | None = None
    order_index: int | None = Field(None, ge=0)


class StoryImageUpdate(BaseModel):
    """Explicit position and/or caption write for one story image."""

    id: int
    order_index: int | None = Field(None, ge=0)
    caption: str | None = None


class StoryImagesUpdate(BaseModel):
    images: list[StoryImageUpdate]


class StoryImageResponse(BaseModel):
    """Schema for a story image returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    story_id: int
    cloudinary_public_id: str
    caption: str | None
    order_index: int
    created_at: datetime


class StoryReorderRequest(BaseModel):
    """Full ordering of the featured stories."""

    story_ids: list[int] = Field(..., min_length=1)


class StoryImageReorderRequest(BaseModel):
    """Full ordering of one story's image sequence."""

    image_ids: list[int] = Field(..., min_length=1)


class StoryImageIds(BaseModel):
    image_ids: list[int] = Field(..., min_length=1)


class StoryEnvelope(BaseModel):
    story: StoryResponse


class StoryListEnvelope(BaseModel):
    stories: list[StoryResponse]


class StoryDetail(BaseModel):
    """A story together with its images in display order."""

    story: StoryResponse
    images: list[StoryImageResponse]


class StoryImageEnvelope(BaseModel):
    image: StoryImageResponse


class StoryImageListEnvelope(BaseModel):
    images: list[StoryImageResponse]
