"""
Rankings API — /rankings
──────────────────────────
Endpoints:
  GET    /rankings                       — Ranked list with scores
  GET    /rankings/least-compared        — Best re-rank candidate
  GET    /rankings/export.csv            — CSV export
  GET    /rankings/export.json           — JSON export
  PUT    /rankings/reorder               — Drag-to-reorder a contiguous range
  POST   /rankings/compact/{media_type}  — Renumber a partition to 1..N
  POST   /rankings/backfill              — Fetch missing genres/runtime
  GET    /rankings/{item_id}             — Single ranked item
  PATCH  /rankings/{item_id}/tier        — Change tier (rank unchanged)
  PATCH  /rankings/{item_id}/review      — Edit review
  POST   /rankings/{item_id}/rerank      — Remove and start a new placement (201)
  DELETE /rankings/{item_id}             — Remove a ranked item (204)
"""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.deps.store import get_backfill_service, get_rank_store, get_session_registry
from app.schemas.rankings import (
    BackfillResponse,
    ChangeTierRequest,
    CompactResponse,
    MediaTypeEnum,
    PlacementSessionResponse,
    RankedItemResponse,
    ReorderRequest,
    UpdateReviewRequest,
)
from app.services.backfill_service import GenreBackfillService
from app.services.export_service import export_rankings_csv, export_rankings_json
from app.services.placement import SessionRegistry
from app.services.rank_maintainer import InvalidReorderError, compact_partition
from app.services.rank_store import RankStore, media_type_value
from app.services.ranking_math import calculate_score, tier_value
from app.services.ranking_service import (
    ItemNotFoundError,
    change_tier,
    delete_item,
    least_compared_item,
    list_ranked,
    reorder_items,
    start_rerank,
    update_review,
)

router = APIRouter()


def _error(code: str, message: str) -> dict:
    """Standard error envelope."""
    return {"error": {"code": code, "message": message}}


def _not_found(exc: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=_error("ITEM_NOT_FOUND", str(exc)),
    )


def hydrate_item(item: Any, score: float) -> dict:
    """Build a dict matching the RankedItemResponse schema."""
    return {
        "id": item.id,
        "catalog_id": item.catalog_id,
        "title": item.title,
        "media_type": media_type_value(item.media_type),
        "tier": tier_value(item.tier),
        "rank": item.rank,
        "score": score,
        "comparison_count": item.comparison_count,
        "date_added": item.date_added,
        "review": item.review,
        "release_date": item.release_date,
        "poster_path": item.poster_path,
        "genre_names": list(item.genre_names or []),
        "runtime_minutes": item.runtime_minutes or 0,
    }


def _hydrate_with_score(store: RankStore, item: Any) -> dict:
    return hydrate_item(item, calculate_score(item, store.list_all()))


# ── Routes ────────────────────────────────────────────────────────────────────


@router.get("", response_model=list[RankedItemResponse])
def get_rankings(
    media_type: MediaTypeEnum | None = Query(None, description="Filter by media type"),
    store: RankStore = Depends(get_rank_store),
) -> list[dict]:
    """Return the ranked list, best first, with scores computed on read."""
    rows = list_ranked(store, media_type=media_type)
    return [hydrate_item(row["item"], row["score"]) for row in rows]


@router.get("/least-compared", response_model=RankedItemResponse)
def get_least_compared(
    media_type: MediaTypeEnum = Query(...),
    store: RankStore = Depends(get_rank_store),
) -> dict:
    item = least_compared_item(store, media_type)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=_error("ITEM_NOT_FOUND", f"No ranked {media_type.value} items"),
        )
    return _hydrate_with_score(store, item)


@router.get("/export.csv")
def export_csv(store: RankStore = Depends(get_rank_store)) -> Response:
    return Response(
        content=export_rankings_csv(store.list_all()),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="rankd_rankings.csv"'},
    )


@router.get("/export.json")
def export_json(store: RankStore = Depends(get_rank_store)) -> list[dict]:
    return export_rankings_json(store.list_all())


@router.put("/reorder", response_model=list[RankedItemResponse])
def reorder_endpoint(
    payload: ReorderRequest,
    store: RankStore = Depends(get_rank_store),
) -> list[dict]:
    """Reassign ranks for a dragged range, starting at payload.starting_rank."""
    try:
        reorder_items(store, payload.media_type, payload.ordered_ids, payload.starting_rank)
    except InvalidReorderError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_error("INVALID_REORDER", str(exc)),
        ) from exc

    rows = list_ranked(store, media_type=payload.media_type)
    return [hydrate_item(row["item"], row["score"]) for row in rows]


@router.post("/compact/{media_type}", response_model=CompactResponse)
def compact_endpoint(
    media_type: MediaTypeEnum,
    store: RankStore = Depends(get_rank_store),
) -> dict:
    changed = compact_partition(store, media_type)
    return {"media_type": media_type.value, "changed": changed}


@router.post("/backfill", response_model=BackfillResponse)
async def backfill_endpoint(
    store: RankStore = Depends(get_rank_store),
    service: GenreBackfillService = Depends(get_backfill_service),
) -> dict:
    """Fetch genres/runtime for items missing them. Never changes ranks."""
    updated = await service.backfill_missing(store)
    return {"updated": updated}


@router.get("/{item_id}", response_model=RankedItemResponse)
def get_ranking(
    item_id: UUID,
    store: RankStore = Depends(get_rank_store),
) -> dict:
    item = store.get(item_id)
    if item is None:
        raise _not_found(ItemNotFoundError(f"Ranked item {item_id} not found"))
    return _hydrate_with_score(store, item)


@router.patch("/{item_id}/tier", response_model=RankedItemResponse)
def change_tier_endpoint(
    item_id: UUID,
    payload: ChangeTierRequest,
    store: RankStore = Depends(get_rank_store),
) -> dict:
    try:
        item = change_tier(store, item_id, payload.tier.value)
    except ItemNotFoundError as exc:
        raise _not_found(exc) from exc
    return _hydrate_with_score(store, item)


@router.patch("/{item_id}/review", response_model=RankedItemResponse)
def update_review_endpoint(
    item_id: UUID,
    payload: UpdateReviewRequest,
    store: RankStore = Depends(get_rank_store),
) -> dict:
    try:
        item = update_review(store, item_id, payload.review)
    except ItemNotFoundError as exc:
        raise _not_found(exc) from exc
    return _hydrate_with_score(store, item)


@router.post(
    "/{item_id}/rerank",
    response_model=PlacementSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
def rerank_endpoint(
    item_id: UUID,
    store: RankStore = Depends(get_rank_store),
    registry: SessionRegistry = Depends(get_session_registry),
) -> dict:
    """Remove the item from its partition and open a fresh placement for it."""
    from app.api.placements import session_response

    try:
        session_id, session = start_rerank(store, registry, item_id)
    except ItemNotFoundError as exc:
        raise _not_found(exc) from exc
    return session_response(session_id, session)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ranking_endpoint(
    item_id: UUID,
    store: RankStore = Depends(get_rank_store),
) -> None:
    """Remove a ranked item and close the gap in its partition."""
    if not delete_item(store, item_id):
        raise _not_found(ItemNotFoundError(f"Ranked item {item_id} not found"))
