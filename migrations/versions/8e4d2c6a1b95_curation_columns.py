"""curation columns

Adds the per-collection position columns, featured stories, the combined
metadata blob and the page profile image.

Revision ID: 8e4d2c6a1b95
Revises: 3c1f9a2b7d40
Create Date: 2025-11-17 15:40:07.518302

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "8e4d2c6a1b95"
down_revision: Union[str, Sequence[str], None] = "3c1f9a2b7d40"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add ordering columns and backfill positions for existing members."""
    with op.batch_alter_table("media") as batch:
        batch.add_column(sa.Column("all_metadata", sa.JSON(), nullable=True))
        batch.add_column(sa.Column("masthead_order", sa.Integer(), nullable=True))
        batch.add_column(sa.Column("featured_order", sa.Integer(), nullable=True))
    with op.batch_alter_table("stories") as batch:
        batch.add_column(
            sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false())
        )
        batch.add_column(sa.Column("featured_order", sa.Integer(), nullable=True))
    with op.batch_alter_table("pages") as batch:
        batch.add_column(sa.Column("profile_image_public_id", sa.String(length=255), nullable=True))

    # Existing members get positions in their current display order (newest first).
    bind = op.get_bind()
    media = sa.table(
        "media",
        sa.column("id", sa.Integer()),
        sa.column("is_featured", sa.Boolean()),
        sa.column("is_masthead", sa.Boolean()),
        sa.column("featured_order", sa.Integer()),
        sa.column("masthead_order", sa.Integer()),
        sa.column("created_at", sa.DateTime(timezone=True)),
    )
    for flag, position in (
        (media.c.is_masthead, media.c.masthead_order),
        (media.c.is_featured, media.c.featured_order),
    ):
        rows = bind.execute(
            sa.select(media.c.id)
            .where(flag.is_(True))
            .order_by(media.c.created_at.desc(), media.c.id.desc())
        ).scalars().all()
        for index, media_id in enumerate(rows):
            bind.execute(
                sa.update(media).where(media.c.id == media_id).values({position.name: index})
            )


def downgrade() -> None:
    with op.batch_alter_table("pages") as batch:
        batch.drop_column("profile_image_public_id")
    with op.batch_alter_table("stories") as batch:
        batch.drop_column("featured_order")
        batch.drop_column("is_featured")
    with op.batch_alter_table("media") as batch:
        batch.drop_column("featured_order")
        batch.drop_column("masthead_order")
        batch.drop_column("all_metadata")
