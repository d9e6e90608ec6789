# src/lightbox/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .common import IdList, MoveRequest, SuccessResponse
from .media import MediaCreate, MediaResponse, MediaUpdate
from .site import PageResponse, PageUpdate, SettingResponse, SettingUpdate
from .story import StoryCreate, StoryImageCreate, StoryImageResponse, StoryResponse, StoryUpdate

__all__ = [
    "IdList", "MoveRequest", "SuccessResponse",
    "MediaCreate", "MediaResponse", "MediaUpdate",
    "PageResponse", "PageUpdate", "SettingResponse", "SettingUpdate",
    "StoryCreate", "StoryImageCreate", "StoryImageResponse", "StoryResponse", "StoryUpdate",
]
