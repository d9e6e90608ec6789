"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field

from lightbox.services.ordering import Direction


class IdList(BaseModel):
    """Request body naming the rows a batch operation applies to."""

    ids: list[int] = Field(..., min_length=1, description="Target row ids")


class MoveRequest(BaseModel):
    """Move one member a single place within its collection."""

    direction: Direction = Field(..., description="'up' or 'down' in display order")


class SuccessResponse(BaseModel):
    """Acknowledgement returned by write endpoints with no payload."""

    success: bool = True
