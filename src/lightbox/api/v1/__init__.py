# src/lightbox/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    media_router,
    public_router,
    site_router,
    stories_router,
    story_images_router,
    system_router,
)

__all__ = [
    "media_router",
    "stories_router",
    "story_images_router",
    "site_router",
    "public_router",
    "system_router",
]
