# src/lightbox/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .media import router as media_router
from .public import router as public_router
from .site import router as site_router
from .stories import router as stories_router
from .story_images import router as story_images_router
from .system import router as system_router

__all__ = [
    "media_router",
    "stories_router",
    "story_images_router",
    "site_router",
    "public_router",
    "system_router",
]
