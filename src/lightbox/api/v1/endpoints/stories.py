# src/lightbox/api/v1/endpoints/stories.py
"""Story management endpoints for the Lightbox admin API."""

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from lightbox.models import Media, Story
from lightbox.schemas.common import IdList, MoveRequest, SuccessResponse
from lightbox.schemas.story import (
    StoryCreate,
    StoryDetail,
    StoryEnvelope,
    StoryImageResponse,
    StoryListEnvelope,
    StoryReorderRequest,
    StoryResponse,
    StoryUpdate,
)
from lightbox.services import ordering
from lightbox.services.ordering import CollectionName, OrderingError
from lightbox.utils.slug import slugify

from ..dependencies import AdminDep, SessionDep, raise_ordering_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stories", tags=["stories"])


def _story_list(stories: list[Story]) -> StoryListEnvelope:
    return StoryListEnvelope(stories=[StoryResponse.model_validate(s) for s in stories])


def get_story_or_404(db: Session, story_id: int) -> Story:
    """Load a story or raise a 404."""
    story = db.get(Story, story_id)
    if story is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Story not found")
    return story


def story_detail(db: Session, story: Story) -> StoryDetail:
    """Build the story payload with its images in display order."""
    images = ordering.list_ordered(db, CollectionName.STORY_IMAGES, parent_id=story.id)
    return StoryDetail(
        story=StoryResponse.model_validate(story),
        images=[StoryImageResponse.model_validate(image) for image in images],
    )


def _delete_stories(db: Session, stories: list[Story]) -> None:
    ids = [story.id for story in stories]
    if not ids:
        return
    # Media outlive their story.
    db.execute(update(Media).where(Media.story_id.in_(ids)).values(story_id=None))
    for story in stories:
        db.delete(story)


@router.get("/", response_model=StoryListEnvelope)
async def list_stories(
    db: SessionDep,
    _admin: AdminDep,
    is_featured: bool | None = None,
) -> StoryListEnvelope:
    """List stories; ``is_featured=true`` returns the featured run in display order."""
    if is_featured:
        return _story_list(ordering.list_ordered(db, CollectionName.FEATURED_STORIES))
    stories = db.execute(
        select(Story).order_by(Story.created_at.desc(), Story.id.desc())
    ).scalars()
    return _story_list(list(stories))


@router.post("/", response_model=StoryEnvelope, status_code=status.HTTP_201_CREATED)
async def create_story(
    story_data: StoryCreate,
    db: SessionDep,
    _admin: AdminDep,
) -> StoryEnvelope:
    """Create a story with a slug derived from its title."""
    slug = slugify(story_data.title)
    if not slug:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title must contain at least one letter or digit",
        )

    existing = db.execute(select(Story).where(Story.slug == slug)).scalar_one_or_none()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A story with slug '{slug}' already exists",
        )

    story = Story(
        slug=slug,
        title=story_data.title,
        year=story_data.year,
        location=story_data.location,
        narrative=story_data.narrative,
        featured_image_public_id=story_data.featured_image_public_id,
    )
    db.add(story)
    db.flush()

    if story_data.is_featured:
        ordering.assign_position(db, CollectionName.FEATURED_STORIES, story.id)

    db.commit()
    db.refresh(story)
    logger.info("Created story %s (%s)", story.id, story.slug)
    return StoryEnvelope(story=StoryResponse.model_validate(story))


@router.delete("/", response_model=SuccessResponse)
async def delete_stories(body: IdList, db: SessionDep, _admin: AdminDep) -> SuccessResponse:
    """Delete several stories; unknown ids are ignored."""
    stories = list(db.execute(select(Story).where(Story.id.in_(body.ids))).scalars())
    _delete_stories(db, stories)
    db.commit()
    return SuccessResponse()


@router.put("/reorder", response_model=StoryListEnvelope)
async def reorder_stories(
    body: StoryReorderRequest,
    db: SessionDep,
    _admin: AdminDep,
) -> StoryListEnvelope:
    """Rewrite the featured story order to match ``story_ids``."""
    try:
        stories = ordering.reorder(db, CollectionName.FEATURED_STORIES, body.story_ids)
    except OrderingError as exc:
        raise_ordering_error(exc)
    db.commit()
    return _story_list(stories)


@router.get("/{story_id}", response_model=StoryDetail)
async def get_story(story_id: int, db: SessionDep, _admin: AdminDep) -> StoryDetail:
    """Get a story and its images."""
    return story_detail(db, get_story_or_404(db, story_id))


@router.put("/{story_id}", response_model=StoryEnvelope)
async def update_story(
    story_id: int,
    story_data: StoryUpdate,
    db: SessionDep,
    _admin: AdminDep,
) -> StoryEnvelope:
    """Update story fields; the slug stays fixed once created."""
    story = get_story_or_404(db, story_id)
    changes = story_data.model_dump(exclude_unset=True)
    is_featured = changes.pop("is_featured", None)

    if "title" in changes and changes["title"] is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title cannot be empty",
        )
    for field, value in changes.items():
        setattr(story, field, value)

    if is_featured is True:
        ordering.assign_position(db, CollectionName.FEATURED_STORIES, story.id)
    elif is_featured is False:
        ordering.clear_position(db, CollectionName.FEATURED_STORIES, story.id)

    db.commit()
    db.refresh(story)
    return StoryEnvelope(story=StoryResponse.model_validate(story))


@router.delete("/{story_id}", response_model=SuccessResponse)
async def delete_story(story_id: int, db: SessionDep, _admin: AdminDep) -> SuccessResponse:
    """Delete a story and its image sequence."""
    story = get_story_or_404(db, story_id)
    _delete_stories(db, [story])
    db.commit()
    logger.info("Deleted story %s", story_id)
    return SuccessResponse()


@router.post("/{story_id}/move", response_model=StoryListEnvelope)
async def move_story(
    story_id: int,
    body: MoveRequest,
    db: SessionDep,
    _admin: AdminDep,
) -> StoryListEnvelope:
    """Swap a featured story with its neighbour."""
    get_story_or_404(db, story_id)
    try:
        stories = ordering.move_adjacent(
            db, CollectionName.FEATURED_STORIES, story_id, body.direction
        )
    except OrderingError as exc:
        raise_ordering_error(exc)
    db.commit()
    return _story_list(stories)
