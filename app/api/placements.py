"""
Placements API — /placements
──────────────────────────────
A placement session finds where a new title belongs by asking one
"which is better?" question at a time.

Endpoints:
  POST   /placements                       — Start a session (201)
  GET    /placements/{session_id}          — Current state / next comparison
  POST   /placements/{session_id}/choice   — Answer the current comparison
  POST   /placements/{session_id}/commit   — Save the title at its final rank (201)
  DELETE /placements/{session_id}          — Abandon without saving (204)
"""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.rankings import hydrate_item
from app.db.models import MediaTypeEnum, TierEnum
from app.deps.store import get_rank_store, get_session_registry
from app.schemas.rankings import (
    CommitPlacementRequest,
    PlacementChoiceRequest,
    PlacementSessionResponse,
    RankedItemResponse,
    StartPlacementRequest,
)
from app.services.placement import (
    PlacementCandidate,
    PlacementNotFoundError,
    PlacementSession,
    PlacementStateError,
    SessionRegistry,
)
from app.services.rank_store import RankStore, media_type_value
from app.services.ranking_math import calculate_score, tier_value
from app.services.ranking_service import (
    DuplicateItemError,
    cancel_placement,
    commit_placement,
    record_choice,
    start_placement,
)

router = APIRouter()


def _error(code: str, message: str) -> dict:
    """Standard error envelope."""
    return {"error": {"code": code, "message": message}}


def session_response(session_id: UUID, session: PlacementSession) -> dict:
    """Build a dict matching the PlacementSessionResponse schema."""
    done, estimated = session.progress
    comparison = session.current_comparison
    return {
        "session_id": session_id,
        "state": session.state.value,
        "title": session.candidate.title,
        "media_type": media_type_value(session.candidate.media_type),
        "tier": tier_value(session.candidate.tier),
        "comparison": None if comparison is None else {
            "id": comparison.id,
            "title": comparison.title,
            "rank": comparison.rank,
            "release_date": comparison.release_date,
            "poster_path": comparison.poster_path,
        },
        "comparisons_done": done,
        "comparisons_estimated": estimated,
        "final_rank": session.final_rank,
    }


def _session_errors(exc: Exception) -> HTTPException:
    if isinstance(exc, PlacementNotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=_error("PLACEMENT_NOT_FOUND", str(exc)),
        )
    if isinstance(exc, DuplicateItemError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=_error("DUPLICATE_ITEM", str(exc)),
        )
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=_error("PLACEMENT_STATE", str(exc)),
    )


# ── Routes ────────────────────────────────────────────────────────────────────


@router.post(
    "",
    response_model=PlacementSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
def start_placement_endpoint(
    payload: StartPlacementRequest,
    store: RankStore = Depends(get_rank_store),
    registry: SessionRegistry = Depends(get_session_registry),
) -> dict:
    """
    Start placing a new title. The tier is chosen up front.

    If nothing of this media type is ranked yet the session is already done
    and can be committed straight away at rank 1.
    """
    candidate = PlacementCandidate(
        catalog_id=payload.catalog_id,
        title=payload.title,
        media_type=MediaTypeEnum(payload.media_type.value),
        tier=TierEnum(payload.tier.value),
        overview=payload.overview,
        poster_path=payload.poster_path,
        release_date=payload.release_date,
        review=payload.review,
    )
    try:
        session_id, session = start_placement(store, registry, candidate)
    except DuplicateItemError as exc:
        raise _session_errors(exc) from exc
    return session_response(session_id, session)


@router.get("/{session_id}", response_model=PlacementSessionResponse)
def get_placement_endpoint(
    session_id: UUID,
    registry: SessionRegistry = Depends(get_session_registry),
) -> dict:
    try:
        session = registry.get(session_id)
    except PlacementNotFoundError as exc:
        raise _session_errors(exc) from exc
    return session_response(session_id, session)


@router.post("/{session_id}/choice", response_model=PlacementSessionResponse)
def choice_endpoint(
    session_id: UUID,
    payload: PlacementChoiceRequest,
    registry: SessionRegistry = Depends(get_session_registry),
) -> dict:
    try:
        session = record_choice(registry, session_id, payload.new_is_better)
    except (PlacementNotFoundError, PlacementStateError) as exc:
        raise _session_errors(exc) from exc
    return session_response(session_id, session)


@router.post(
    "/{session_id}/commit",
    response_model=RankedItemResponse,
    status_code=status.HTTP_201_CREATED,
)
def commit_endpoint(
    session_id: UUID,
    payload: CommitPlacementRequest | None = None,
    store: RankStore = Depends(get_rank_store),
    registry: SessionRegistry = Depends(get_session_registry),
) -> dict:
    """Shift the partition and insert the title at its final rank."""
    review = payload.review if payload is not None else None
    try:
        item = commit_placement(store, registry, session_id, review=review)
    except (PlacementNotFoundError, PlacementStateError, DuplicateItemError) as exc:
        raise _session_errors(exc) from exc
    return hydrate_item(item, calculate_score(item, store.list_all()))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_endpoint(
    session_id: UUID,
    registry: SessionRegistry = Depends(get_session_registry),
) -> None:
    """Abandon a session. No ranks are touched."""
    try:
        cancel_placement(registry, session_id)
    except PlacementNotFoundError as exc:
        raise _session_errors(exc) from exc
