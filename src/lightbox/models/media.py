"""SQLAlchemy model for the media library."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lightbox.db.session import Base
from lightbox.db.time import utcnow


class Media(Base):
    """An image stored on the image host, with its extracted metadata.

    A media row can sit in two curated collections at once: the masthead
    carousel and the featured strip. Each has its own flag and position.
    """

    __tablename__ = "media"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cloudinary_public_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    cloudinary_url: Mapped[str] = mapped_column(Text, nullable=False)
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)

    exif_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    iptc_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    # Everything the image host returned on upload, kept verbatim.
    all_metadata: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_masthead: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    masthead_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    featured_order: Mapped[int | None] = mapped_column(Integer, nullable=True)

    story_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("stories.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
