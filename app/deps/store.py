"""
Store dependencies — shared across ranking, placement, and taste endpoints.

Usage in any route:
    from app.deps.store import get_rank_store

    @router.get("/items")
    def items(store: RankStore = Depends(get_rank_store)):
        ...

Tests swap these out with app.dependency_overrides.
"""
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.repository import SqlAlchemyRankStore
from app.db.session import get_db
from app.services.backfill_service import GenreBackfillService
from app.services.placement import SessionRegistry
from app.services.rank_store import RankStore
from app.services.tmdb_sync import TMDBConfigError, TMDBService

# Placement sessions live in process memory between requests.
_session_registry = SessionRegistry()
_backfill_service: GenreBackfillService | None = None


def get_rank_store(db: Session = Depends(get_db)) -> RankStore:
    return SqlAlchemyRankStore(db)


def get_session_registry() -> SessionRegistry:
    return _session_registry


def get_backfill_service() -> GenreBackfillService:
    """
    Return the process-wide backfill service.

    Raises 503 when no TMDB API key is configured.
    """
    global _backfill_service
    if _backfill_service is None:
        try:
            client = TMDBService()
        except TMDBConfigError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail={"error": {"code": "TMDB_NOT_CONFIGURED", "message": str(exc)}},
            ) from exc
        _backfill_service = GenreBackfillService(client)
    return _backfill_service
