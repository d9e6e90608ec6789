# src/lightbox/api/v1/endpoints/media.py
"""Media library endpoints for the Lightbox admin API."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from lightbox.core.settings import settings
from lightbox.models import Media, Story
from lightbox.schemas.common import IdList, SuccessResponse
from lightbox.schemas.media import (
    MediaBatchUpdate,
    MediaCreate,
    MediaDimensions,
    MediaDimensionsEnvelope,
    MediaEnvelope,
    MediaListEnvelope,
    MediaMoveRequest,
    MediaReorderRequest,
    MediaResponse,
    MediaUpdate,
)
from lightbox.services import ordering
from lightbox.services.image_host import (
    ImageHostClient,
    ImageHostDisabledError,
    ImageHostError,
    delete_from_image_host,
    delivery_url,
    get_image_host_client,
)
from lightbox.services.ordering import CollectionName, OrderingError

from ..dependencies import AdminDep, SessionDep, raise_ordering_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/media", tags=["media"])

# Flag on the media row -> collection it controls.
_FLAG_COLLECTIONS = (
    ("is_masthead", CollectionName.MASTHEAD),
    ("is_featured", CollectionName.FEATURED_MEDIA),
)


def get_image_host_dep() -> ImageHostClient:
    """Return the shared image host client."""
    return get_image_host_client()


ImageHostDep = Annotated[ImageHostClient, Depends(get_image_host_dep)]


def _media_list(items: list[Media]) -> MediaListEnvelope:
    return MediaListEnvelope(media=[MediaResponse.model_validate(m) for m in items])


def _get_media_or_404(db: Session, media_id: int) -> Media:
    media = db.get(Media, media_id)
    if media is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found")
    return media


def _ensure_story(db: Session, story_id: int | None) -> None:
    if story_id is not None and db.get(Story, story_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Story not found")


def _load_media(db: Session, ids: list[int]) -> list[Media]:
    """Return media rows for ``ids`` in the given order, 404 if any is missing."""
    found = {m.id: m for m in db.execute(select(Media).where(Media.id.in_(ids))).scalars()}
    missing = [i for i in ids if i not in found]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Media not found: {', '.join(str(i) for i in missing)}",
        )
    return [found[i] for i in ids]


def _apply_update(db: Session, items: list[Media], update: MediaUpdate) -> None:
    """Apply ``update`` to every item; flags go through the ordering rules."""
    fields = update.model_fields_set
    if "story_id" in fields:
        _ensure_story(db, update.story_id)

    for media in items:
        if "caption" in fields:
            media.caption = update.caption
        if "story_id" in fields:
            media.story_id = update.story_id

    ids = [media.id for media in items]
    try:
        for flag, collection in _FLAG_COLLECTIONS:
            value = getattr(update, flag)
            if flag not in fields or value is None:
                continue
            if value:
                ordering.assign_positions(db, collection, ids)
            else:
                for media_id in ids:
                    ordering.clear_position(db, collection, media_id)
    except OrderingError as exc:
        raise_ordering_error(exc)


@router.get("/", response_model=MediaListEnvelope)
async def list_media(
    db: SessionDep,
    _admin: AdminDep,
    story_id: int | None = None,
    is_featured: bool | None = None,
    is_masthead: bool | None = None,
) -> MediaListEnvelope:
    """List media; the masthead and featured filters return display order."""
    if is_featured:
        items = ordering.list_ordered(db, CollectionName.FEATURED_MEDIA)
    elif is_masthead:
        items = ordering.list_ordered(db, CollectionName.MASTHEAD)
    else:
        items = list(
            db.execute(
                select(Media).order_by(Media.created_at.desc(), Media.id.desc())
            ).scalars()
        )

    if story_id is not None:
        items = [m for m in items if m.story_id == story_id]
    return _media_list(items)


@router.post("/", response_model=MediaEnvelope, status_code=status.HTTP_201_CREATED)
async def create_media(
    media_data: MediaCreate,
    db: SessionDep,
    _admin: AdminDep,
) -> MediaEnvelope:
    """Register an image that the admin panel uploaded to the image host."""
    existing = db.execute(
        select(Media).where(Media.cloudinary_public_id == media_data.cloudinary_public_id)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Media with this public id already exists",
        )
    _ensure_story(db, media_data.story_id)

    url = media_data.cloudinary_url
    if url is None:
        if not settings.cloudinary_cloud_name:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="cloudinary_url is required when no cloud name is configured",
            )
        url = delivery_url(media_data.cloudinary_public_id)

    media = Media(
        cloudinary_public_id=media_data.cloudinary_public_id,
        cloudinary_url=url,
        caption=media_data.caption,
        exif_data=media_data.exif_data,
        iptc_data=media_data.iptc_data,
        all_metadata=media_data.all_metadata,
        story_id=media_data.story_id,
    )
    db.add(media)
    db.flush()

    if media_data.is_masthead:
        ordering.assign_position(db, CollectionName.MASTHEAD, media.id)
    if media_data.is_featured:
        ordering.assign_position(db, CollectionName.FEATURED_MEDIA, media.id)

    db.commit()
    db.refresh(media)
    logger.info("Registered media %s (%s)", media.id, media.cloudinary_public_id)
    return MediaEnvelope(media=MediaResponse.model_validate(media))


@router.delete("/", response_model=SuccessResponse)
async def delete_media_batch(
    body: IdList,
    db: SessionDep,
    _admin: AdminDep,
    image_host: ImageHostDep,
) -> SuccessResponse:
    """Delete several media items here and on the image host."""
    items = list(db.execute(select(Media).where(Media.id.in_(body.ids))).scalars())
    await delete_from_image_host(image_host, [m.cloudinary_public_id for m in items])
    for media in items:
        db.delete(media)
    db.commit()
    return SuccessResponse()


@router.put("/batch", response_model=SuccessResponse)
async def batch_update_media(
    body: MediaBatchUpdate,
    db: SessionDep,
    _admin: AdminDep,
) -> SuccessResponse:
    """Apply one update to several media items.

    Turning a flag on appends the items to that collection in the order the
    ids were given; turning it off removes them all.
    """
    if not body.updates.model_fields_set:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid updates provided",
        )
    items = _load_media(db, body.ids)
    _apply_update(db, items, body.updates)
    db.commit()
    return SuccessResponse()


@router.put("/reorder", response_model=MediaListEnvelope)
async def reorder_media(
    body: MediaReorderRequest,
    db: SessionDep,
    _admin: AdminDep,
) -> MediaListEnvelope:
    """Rewrite the masthead or featured order to match ``media_ids``."""
    try:
        items = ordering.reorder(db, body.type, body.media_ids)
    except OrderingError as exc:
        raise_ordering_error(exc)
    db.commit()
    return _media_list(items)


@router.get("/dimensions", response_model=MediaDimensionsEnvelope)
async def media_dimensions(
    db: SessionDep,
    _admin: AdminDep,
    image_host: ImageHostDep,
    limit: int = Query(10, ge=1, le=100),
) -> MediaDimensionsEnvelope:
    """Look up pixel dimensions of the most recent media on the image host."""
    items = db.execute(
        select(Media).order_by(Media.created_at.desc(), Media.id.desc()).limit(limit)
    ).scalars()

    results: list[MediaDimensions] = []
    for media in items:
        entry = MediaDimensions(id=media.id, public_id=media.cloudinary_public_id)
        try:
            resource = await image_host.fetch_resource(media.cloudinary_public_id)
        except ImageHostDisabledError:
            entry.error = "Image host not configured"
        except ImageHostError as exc:
            logger.warning("Dimension lookup failed for %s: %s", media.cloudinary_public_id, exc)
            entry.error = "Failed to fetch dimensions"
        else:
            if resource is None:
                entry.error = "Not found on image host"
            else:
                entry.width = resource.width
                entry.height = resource.height
                entry.aspect_ratio = resource.aspect_ratio
                entry.format = resource.format
        results.append(entry)
    return MediaDimensionsEnvelope(media=results)


@router.get("/{media_id}", response_model=MediaEnvelope)
async def get_media(media_id: int, db: SessionDep, _admin: AdminDep) -> MediaEnvelope:
    """Get a single media item."""
    return MediaEnvelope(media=MediaResponse.model_validate(_get_media_or_404(db, media_id)))


@router.put("/{media_id}", response_model=MediaEnvelope)
async def update_media(
    media_id: int,
    update: MediaUpdate,
    db: SessionDep,
    _admin: AdminDep,
) -> MediaEnvelope:
    """Update caption, story link or collection membership of one media item."""
    media = _get_media_or_404(db, media_id)
    _apply_update(db, [media], update)
    db.commit()
    db.refresh(media)
    return MediaEnvelope(media=MediaResponse.model_validate(media))


@router.post("/{media_id}/move", response_model=MediaListEnvelope)
async def move_media(
    media_id: int,
    body: MediaMoveRequest,
    db: SessionDep,
    _admin: AdminDep,
) -> MediaListEnvelope:
    """Swap a media item with its neighbour in the masthead or featured order."""
    _get_media_or_404(db, media_id)
    try:
        items = ordering.move_adjacent(db, body.type, media_id, body.direction)
    except OrderingError as exc:
        raise_ordering_error(exc)
    db.commit()
    return _media_list(items)


@router.delete("/{media_id}", response_model=SuccessResponse)
async def delete_media(
    media_id: int,
    db: SessionDep,
    _admin: AdminDep,
    image_host: ImageHostDep,
) -> SuccessResponse:
    """Delete a media item here and on the image host.

    Image host failures are logged; the local row is removed regardless.
    """
    media = _get_media_or_404(db, media_id)
    await delete_from_image_host(image_host, [media.cloudinary_public_id])
    db.delete(media)
    db.commit()
    return SuccessResponse()
