"""SQLAlchemy models for stories and their image sequences."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lightbox.db.session import Base
from lightbox.db.time import utcnow


class Story(Base):
    """A photo essay: narrative text plus an ordered run of images."""

    __tablename__ = "stories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    narrative: Mapped[str | None] = mapped_column(Text, nullable=True)
    featured_image_public_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    featured_order: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    images: Mapped[list["StoryImage"]] = relationship(
        back_populates="story",
        cascade="all, delete-orphan",
    )


class StoryImage(Base):
    """One image in a story's sequence.

    Every image is a member of its parent story's sequence; ``order_index``
    only has to give a total order among siblings.
    """

    __tablename__ = "story_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    story_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("stories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    cloudinary_public_id: Mapped[str] = mapped_column(String(255), nullable=False)
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    story: Mapped[Story] = relationship(back_populates="images")
