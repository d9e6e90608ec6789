# src/lightbox/services/__init__.py
"""Business logic services for the Lightbox application."""

from .image_host import ImageHostClient
from .ordering import CollectionName, Direction, OrderingError

__all__ = [
    "CollectionName",
    "Direction",
    "ImageHostClient",
    "OrderingError",
]
