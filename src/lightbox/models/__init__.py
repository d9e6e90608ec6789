# src/lightbox/models/__init__.py
"""SQLAlchemy models for the Lightbox application."""

from .media import Media
from .site import Page, SiteSetting
from .story import Story, StoryImage

__all__ = [
    "Media",
    "Page", "SiteSetting",
    "Story", "StoryImage",
]
