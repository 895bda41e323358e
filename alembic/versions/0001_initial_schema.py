"""Initial schema — ranked_items

Revision ID: 0001
Revises: —
Create Date: 2026-10-19 00:00:00
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "ranked_items",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("catalog_id", sa.Integer(), nullable=False, comment="TMDB id"),
        sa.Column(
            "media_type",
            sa.Enum("movie", "show", name="media_type"),
            nullable=False,
        ),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("overview", sa.Text(), nullable=False, server_default=""),
        sa.Column("poster_path", sa.String(255), nullable=True),
        sa.Column("release_date", sa.String(32), nullable=True),
        sa.Column(
            "tier",
            sa.Enum("good", "medium", "bad", name="ranking_tier"),
            nullable=False,
        ),
        sa.Column("rank", sa.Integer(), nullable=False, comment="1 = best, dense per media_type"),
        sa.Column("comparison_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "date_added",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("review", sa.Text(), nullable=True),
        sa.Column("genre_names", sa.JSON(), nullable=False),
        sa.Column("runtime_minutes", sa.Integer(), nullable=False, server_default="0"),
        # No duplicate ranking of the same title/media-type pair
        sa.UniqueConstraint("catalog_id", "media_type", name="uq_ranked_items_catalog_media"),
        sa.CheckConstraint("rank >= 1", name="chk_rank_positive"),
    )
    # Rank is deliberately not unique: shifts pass through transient duplicates
    # inside a single transaction.
    op.create_index("ix_ranked_items_media_rank", "ranked_items", ["media_type", "rank"])


def downgrade() -> None:
    op.drop_index("ix_ranked_items_media_rank", table_name="ranked_items")
    op.drop_table("ranked_items")
    sa.Enum(name="ranking_tier").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="media_type").drop(op.get_bind(), checkfirst=True)
