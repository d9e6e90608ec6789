# src/lightbox/api/v1/endpoints/story_images.py
"""Endpoints for a story's image sequence."""

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from lightbox.models import Media, StoryImage
from lightbox.schemas.common import MoveRequest, SuccessResponse
from lightbox.schemas.story import (
    StoryImageCreate,
    StoryImageEnvelope,
    StoryImageIds,
    StoryImageListEnvelope,
    StoryImageReorderRequest,
    StoryImageResponse,
    StoryImagesUpdate,
)
from lightbox.services import ordering
from lightbox.services.ordering import CollectionName, OrderingError

from ..dependencies import AdminDep, SessionDep, raise_ordering_error
from .stories import get_story_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stories/{story_id}/images", tags=["story-images"])


def _image_list(images: list[StoryImage]) -> StoryImageListEnvelope:
    return StoryImageListEnvelope(images=[StoryImageResponse.model_validate(i) for i in images])


def _ordered_images(db: Session, story_id: int) -> list[StoryImage]:
    return ordering.list_ordered(db, CollectionName.STORY_IMAGES, parent_id=story_id)


@router.post("/", response_model=StoryImageEnvelope, status_code=status.HTTP_201_CREATED)
async def add_story_image(
    story_id: int,
    image_data: StoryImageCreate,
    db: SessionDep,
    _admin: AdminDep,
) -> StoryImageEnvelope:
    """Attach an image to a story.

    An explicit ``order_index`` is stored as given; otherwise the image goes
    after the current last one. A media row with the same public id is linked
    to the story.
    """
    story = get_story_or_404(db, story_id)

    position = image_data.order_index
    if position is None:
        position = ordering.next_position(db, CollectionName.STORY_IMAGES, parent_id=story.id)

    image = StoryImage(
        story_id=story.id,
        cloudinary_public_id=image_data.cloudinary_public_id,
        caption=image_data.caption,
        order_index=position,
    )
    db.add(image)
    db.execute(
        update(Media)
        .where(Media.cloudinary_public_id == image_data.cloudinary_public_id)
        .values(story_id=story.id)
    )
    db.commit()
    db.refresh(image)
    logger.info("Added image %s to story %s at %s", image.id, story.id, position)
    return StoryImageEnvelope(image=StoryImageResponse.model_validate(image))


@router.put("/", response_model=StoryImageListEnvelope)
async def update_story_images(
    story_id: int,
    body: StoryImagesUpdate,
    db: SessionDep,
    _admin: AdminDep,
) -> StoryImageListEnvelope:
    """Write explicit positions and captions for several images at once."""
    get_story_or_404(db, story_id)
    siblings = {image.id: image for image in _ordered_images(db, story_id)}

    foreign = [entry.id for entry in body.images if entry.id not in siblings]
    if foreign:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Images not in story {story_id}: {', '.join(str(i) for i in foreign)}",
        )

    for entry in body.images:
        image = siblings[entry.id]
        fields = entry.model_fields_set
        if "order_index" in fields and entry.order_index is not None:
            image.order_index = entry.order_index
        if "caption" in fields:
            image.caption = entry.caption

    db.commit()
    return _image_list(_ordered_images(db, story_id))


@router.delete("/", response_model=SuccessResponse)
async def delete_story_images(
    story_id: int,
    body: StoryImageIds,
    db: SessionDep,
    _admin: AdminDep,
) -> SuccessResponse:
    """Remove several images from a story; ids from other stories are ignored."""
    get_story_or_404(db, story_id)
    images = db.execute(
        select(StoryImage).where(
            StoryImage.story_id == story_id,
            StoryImage.id.in_(body.image_ids),
        )
    ).scalars()
    for image in images:
        db.delete(image)
    db.commit()
    return SuccessResponse()


@router.put("/reorder", response_model=StoryImageListEnvelope)
async def reorder_story_images(
    story_id: int,
    body: StoryImageReorderRequest,
    db: SessionDep,
    _admin: AdminDep,
) -> StoryImageListEnvelope:
    """Rewrite the sequence so the images appear in ``image_ids`` order."""
    get_story_or_404(db, story_id)
    try:
        images = ordering.reorder(
            db, CollectionName.STORY_IMAGES, body.image_ids, parent_id=story_id
        )
    except OrderingError as exc:
        raise_ordering_error(exc)
    db.commit()
    return _image_list(images)


@router.post("/{image_id}/move", response_model=StoryImageListEnvelope)
async def move_story_image(
    story_id: int,
    image_id: int,
    body: MoveRequest,
    db: SessionDep,
    _admin: AdminDep,
) -> StoryImageListEnvelope:
    """Swap an image with its neighbour in the story."""
    get_story_or_404(db, story_id)
    try:
        images = ordering.move_adjacent(
            db, CollectionName.STORY_IMAGES, image_id, body.direction, parent_id=story_id
        )
    except OrderingError as exc:
        raise_ordering_error(exc)
    db.commit()
    return _image_list(images)


@router.delete("/{image_id}", response_model=SuccessResponse)
async def delete_story_image(
    story_id: int,
    image_id: int,
    db: SessionDep,
    _admin: AdminDep,
) -> SuccessResponse:
    """Remove one image from a story; the remaining order is left as is."""
    image = db.get(StoryImage, image_id)
    if image is None or image.story_id != story_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
    db.delete(image)
    db.commit()
    return SuccessResponse()
