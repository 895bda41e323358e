"""
Ranking and placement request/response schemas.
"""
from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TierEnum(str, Enum):
    """Valid tier values — must match DB enum."""

    GOOD = "good"
    MEDIUM = "medium"
    BAD = "bad"


class MediaTypeEnum(str, Enum):
    """Valid media types — must match DB enum."""

    MOVIE = "movie"
    SHOW = "show"


def _cap_review(v: str | None) -> str | None:
    if v is not None and len(v) > 2000:
        raise ValueError("Review cannot exceed 2000 characters")
    return v


# ── Placement ────────────────────────────────────────────────────────────────


class StartPlacementRequest(BaseModel):
    """Payload for POST /placements."""

    catalog_id: int = Field(gt=0)
    title: str = Field(min_length=1, max_length=500)
    media_type: MediaTypeEnum
    tier: TierEnum
    overview: str = ""
    poster_path: str | None = None
    release_date: str | None = None
    review: str | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be blank")
        return v

    @field_validator("review")
    @classmethod
    def cap_review_length(cls, v: str | None) -> str | None:
        return _cap_review(v)


class PlacementChoiceRequest(BaseModel):
    """Payload for POST /placements/{session_id}/choice."""

    new_is_better: bool


class CommitPlacementRequest(BaseModel):
    """Payload for POST /placements/{session_id}/commit."""

    review: str | None = None

    @field_validator("review")
    @classmethod
    def cap_review_length(cls, v: str | None) -> str | None:
        return _cap_review(v)


class ComparisonTarget(BaseModel):
    """The existing item the new title is compared against."""

    id: UUID
    title: str
    rank: int
    release_date: str | None = None
    poster_path: str | None = None

    model_config = ConfigDict(from_attributes=True)


class PlacementSessionResponse(BaseModel):
    session_id: UUID
    state: str
    title: str
    media_type: str
    tier: str
    comparison: ComparisonTarget | None = None
    comparisons_done: int
    comparisons_estimated: int
    final_rank: int | None = None


# ── Ranked items ─────────────────────────────────────────────────────────────


class RankedItemResponse(BaseModel):
    """Single item in the ranked-list response."""

    id: UUID
    catalog_id: int
    title: str
    media_type: str
    tier: str
    rank: int
    score: float
    comparison_count: int
    date_added: datetime
    review: str | None
    release_date: str | None
    poster_path: str | None
    genre_names: list[str]
    runtime_minutes: int


class ChangeTierRequest(BaseModel):
    """Payload for PATCH /rankings/{item_id}/tier."""

    tier: TierEnum


class UpdateReviewRequest(BaseModel):
    """Payload for PATCH /rankings/{item_id}/review."""

    review: str | None = None

    @field_validator("review")
    @classmethod
    def cap_review_length(cls, v: str | None) -> str | None:
        return _cap_review(v)


class ReorderRequest(BaseModel):
    """Payload for PUT /rankings/reorder."""

    media_type: MediaTypeEnum
    ordered_ids: list[UUID] = Field(min_length=1)
    starting_rank: int = Field(4, ge=1)

    @model_validator(mode="after")
    def ids_must_be_unique(self) -> "ReorderRequest":
        if len(set(self.ordered_ids)) != len(self.ordered_ids):
            raise ValueError("ordered_ids must not contain duplicates")
        return self


class CompactResponse(BaseModel):
    media_type: str
    changed: int


class BackfillResponse(BaseModel):
    updated: int
