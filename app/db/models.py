"""
SQLAlchemy ORM models.

A single table holds the user's ranked titles. Ranks are dense per media type
(1..N) and maintained by app.services.rank_maintainer, not by the database.
"""
import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import DeclarativeBase


# ── Base ──────────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


# ── Enums ─────────────────────────────────────────────────────────────────────

class TierEnum(str, PyEnum):
    GOOD = "good"
    MEDIUM = "medium"
    BAD = "bad"


class MediaTypeEnum(str, PyEnum):
    MOVIE = "movie"
    SHOW = "show"


# ── Date helpers ──────────────────────────────────────────────────────────────

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def release_year(release_date: str | None) -> int | None:
    """Year from a "YYYY-MM-DD" release date, or None when it has no usable year."""
    if not release_date or len(release_date) < 4 or not release_date[:4].isdigit():
        return None
    return int(release_date[:4])


# ── Models ────────────────────────────────────────────────────────────────────

class RankedItem(Base):
    """
    A title the user has finished ranking.

    genre_names (JSON) and runtime_minutes stay empty/0 until the metadata
    backfill fills them in; they never influence rank or tier.
    """
    __tablename__ = "ranked_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    catalog_id = Column(Integer, nullable=False, comment="TMDB id")
    media_type = Column(
        SAEnum(
            MediaTypeEnum,
            name="media_type",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
    )
    title = Column(String(500), nullable=False)
    overview = Column(Text, nullable=False, default="")
    poster_path = Column(String(255), nullable=True)
    release_date = Column(String(32), nullable=True)
    tier = Column(
        SAEnum(
            TierEnum,
            name="ranking_tier",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
    )
    rank = Column(Integer, nullable=False, comment="1 = best, dense per media_type")
    comparison_count = Column(Integer, nullable=False, default=0)
    date_added = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    review = Column(Text, nullable=True)
    genre_names = Column(JSON, nullable=False, default=list)
    runtime_minutes = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("catalog_id", "media_type", name="uq_ranked_items_catalog_media"),
        CheckConstraint("rank >= 1", name="chk_rank_positive"),
        Index("ix_ranked_items_media_rank", "media_type", "rank"),
    )

    def __repr__(self) -> str:
        return (
            f"<RankedItem id={self.id} title={self.title!r} "
            f"media_type={self.media_type} rank={self.rank}>"
        )
