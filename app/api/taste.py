"""
Taste API — /taste
──────────────────
Endpoints:
  GET /taste/profile  — Taste archetype, supporting facts, and DNA stats
"""
from dataclasses import asdict

from fastapi import APIRouter, Depends

from app.deps.store import get_rank_store
from app.schemas.taste import TasteProfileResponse
from app.services.rank_store import RankStore
from app.services.taste_service import classify

router = APIRouter()


@router.get("/profile", response_model=TasteProfileResponse)
def get_taste_profile(store: RankStore = Depends(get_rank_store)) -> dict:
    """Classify the whole collection. Read-only; always succeeds."""
    result = classify(store.list_all())
    return {
        "archetype": result.archetype.value,
        "description": result.archetype.description,
        "supporting_facts": result.supporting_facts,
        "dna": asdict(result.dna),
    }
