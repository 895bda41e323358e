"""
Ranking business logic — place, commit, delete, reorder, re-rank.

All reads and writes go through a RankStore, so these functions run the same
against SQLAlchemy or the in-memory store used in tests. Placement sessions
live in a SessionRegistry between requests and touch the store only on commit.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from app.db.models import MediaTypeEnum, RankedItem, TierEnum
from app.services.placement import (
    PlacementCandidate,
    PlacementSession,
    PlacementStateError,
    SessionRegistry,
)
from app.services.rank_maintainer import (
    DEFAULT_REORDER_START,
    insert_at_rank,
    reorder_range,
    shift_after_deletion,
)
from app.services.rank_store import RankStore, media_type_value
from app.services.ranking_math import calculate_all_scores

logger = logging.getLogger(__name__)


class DuplicateItemError(Exception):
    """Raised when the (catalog_id, media_type) pair is already ranked."""


class ItemNotFoundError(Exception):
    """Raised when a ranked item does not exist."""


def _get_or_raise(store: RankStore, item_id: UUID) -> Any:
    item = store.get(item_id)
    if item is None:
        raise ItemNotFoundError(f"Ranked item {item_id} not found")
    return item


def _ensure_not_ranked(store: RankStore, catalog_id: int, media_type: Any) -> None:
    if store.find_by_catalog(catalog_id, media_type) is not None:
        raise DuplicateItemError(
            f"{media_type_value(media_type)} {catalog_id} is already ranked"
        )


# ── Read operations ──────────────────────────────────────────────────────────


def list_ranked(
    store: RankStore,
    *,
    media_type: MediaTypeEnum | str | None = None,
) -> list[dict]:
    """
    Return ranked items with their computed scores, best rank first.

    Scores are always computed over the whole collection so that filtering
    by media type does not change them.
    """
    all_items = store.list_all()
    scores = calculate_all_scores(all_items)

    if media_type is not None:
        items = store.list_partition(media_type)
    else:
        items = sorted(all_items, key=lambda i: (media_type_value(i.media_type), i.rank))

    return [{"item": item, "score": scores[item.id]} for item in items]


def least_compared_item(
    store: RankStore,
    media_type: MediaTypeEnum | str,
) -> Any | None:
    """The item placed with the fewest comparisons, a good re-rank candidate."""
    partition = store.list_partition(media_type)
    if not partition:
        return None
    return min(partition, key=lambda i: (i.comparison_count, i.rank))


# ── Placement ────────────────────────────────────────────────────────────────


def start_placement(
    store: RankStore,
    registry: SessionRegistry,
    candidate: PlacementCandidate,
) -> tuple[UUID, PlacementSession]:
    """
    Open a placement session for a new title.

    Duplicates are rejected before any comparison is asked. The partition
    snapshot is taken now and held for the life of the session.
    """
    _ensure_not_ranked(store, candidate.catalog_id, candidate.media_type)

    session = PlacementSession(candidate, store.list_partition(candidate.media_type))
    session_id = registry.open(session)
    logger.info(
        "Started placement %s for %s %s against %s items",
        session_id,
        media_type_value(candidate.media_type),
        candidate.catalog_id,
        len(session.partition),
    )
    return session_id, session


def record_choice(
    registry: SessionRegistry,
    session_id: UUID,
    new_is_better: bool,
) -> PlacementSession:
    session = registry.get(session_id)
    session.record_choice(new_is_better)
    return session


def cancel_placement(registry: SessionRegistry, session_id: UUID) -> None:
    """Abandon a session. Nothing was written, so nothing is undone."""
    session = registry.get(session_id)
    session.cancel()
    registry.close(session_id)
    logger.info("Cancelled placement %s", session_id)


def commit_placement(
    store: RankStore,
    registry: SessionRegistry,
    session_id: UUID,
    *,
    review: str | None = None,
) -> RankedItem:
    """
    Persist a finished placement: shift the partition and insert the record.

    The duplicate check is repeated because the title may have been ranked
    through another path while the session was open.
    """
    session = registry.get(session_id)
    if not session.is_done:
        raise PlacementStateError(
            f"Placement {session_id} is {session.state.value}, not done"
        )

    candidate = session.candidate
    _ensure_not_ranked(store, candidate.catalog_id, candidate.media_type)

    item = RankedItem(
        id=uuid.uuid4(),
        catalog_id=candidate.catalog_id,
        title=candidate.title,
        overview=candidate.overview or "",
        poster_path=candidate.poster_path,
        release_date=candidate.release_date,
        media_type=MediaTypeEnum(media_type_value(candidate.media_type)),
        tier=TierEnum(candidate.tier),
        rank=session.final_rank,
        comparison_count=session.comparison_count,
        date_added=datetime.now(timezone.utc),
        review=review if review else candidate.review,
        genre_names=[],
        runtime_minutes=0,
    )
    insert_at_rank(store, item, session.final_rank)
    registry.close(session_id)

    logger.info(
        "Committed placement %s: %r at rank %s after %s comparisons",
        session_id, item.title, item.rank, item.comparison_count,
    )
    return item


# ── Mutations on ranked items ────────────────────────────────────────────────


def delete_item(store: RankStore, item_id: UUID) -> bool:
    """
    Delete a ranked item and close the gap in its partition.

    Returns False (and changes nothing) if the item is already gone.
    """
    item = store.remove(item_id)
    if item is None:
        return False
    store.save()
    shift_after_deletion(store, item.id, item.rank, item.media_type)
    return True


def reorder_items(
    store: RankStore,
    media_type: MediaTypeEnum | str,
    ordered_ids: list[UUID],
    starting_rank: int = DEFAULT_REORDER_START,
) -> list[Any]:
    """Apply a drag-to-reorder and return the updated partition."""
    reorder_range(store, media_type, ordered_ids, starting_rank)
    return store.list_partition(media_type)


def change_tier(store: RankStore, item_id: UUID, tier: TierEnum | str) -> Any:
    """Move an item to another tier. Its rank is left as is."""
    item = _get_or_raise(store, item_id)
    item.tier = TierEnum(tier)
    store.save()
    return item


def update_review(store: RankStore, item_id: UUID, review: str | None) -> Any:
    item = _get_or_raise(store, item_id)
    item.review = review or None
    store.save()
    return item


def apply_metadata(
    store: RankStore,
    item_id: UUID,
    genre_names: list[str],
    runtime_minutes: int,
    *,
    save: bool = True,
) -> Any | None:
    """
    Store backfilled metadata. Never touches rank or tier.

    Returns None if the item was deleted while its metadata was in flight.
    """
    item = store.get(item_id)
    if item is None:
        return None
    item.genre_names = list(genre_names)
    item.runtime_minutes = runtime_minutes or 0
    if save:
        store.save()
    return item


def start_rerank(
    store: RankStore,
    registry: SessionRegistry,
    item_id: UUID,
) -> tuple[UUID, PlacementSession]:
    """
    Pull an item out of its partition and place it again from scratch.

    The item is deleted (closing its gap) and a new session is opened for the
    same title and tier, carrying its review. Cancelling that session leaves
    the title unranked.
    """
    item = _get_or_raise(store, item_id)
    candidate = PlacementCandidate(
        catalog_id=item.catalog_id,
        title=item.title,
        media_type=MediaTypeEnum(media_type_value(item.media_type)),
        tier=TierEnum(item.tier),
        overview=item.overview or "",
        poster_path=item.poster_path,
        release_date=item.release_date,
        review=item.review,
    )
    delete_item(store, item_id)
    logger.info("Re-ranking %r (was rank %s)", item.title, item.rank)
    return start_placement(store, registry, candidate)
