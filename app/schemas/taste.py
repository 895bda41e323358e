"""
Taste personality response schemas.
"""
from pydantic import BaseModel


class GenreShareItem(BaseModel):
    name: str
    percentage: int  # of genre-tagged items


class TasteDNAResponse(BaseModel):
    """Aggregate stats shown alongside the archetype."""

    top_genres: list[GenreShareItem]
    average_score: float  # 1.0-3.0 (good=3, medium=2, bad=1)
    pickiness_percent: int  # % bad tier
    favorite_decade: str | None = None
    movie_count: int
    show_count: int


class TasteProfileResponse(BaseModel):
    archetype: str
    description: str
    supporting_facts: list[str]
    dna: TasteDNAResponse
