"""
Rank Maintainer
───────────────
Keeps every media-type partition dense: ranks are exactly 1..N with no gaps
and no duplicates after each insertion, deletion, or manual reorder.

Shifts are best-effort per record. If the store reports that a record no
longer exists it is skipped, which keeps repeated or partial application safe
to retry. Each mutation is saved as one batch.
"""
import logging
from typing import Any, Iterable
from uuid import UUID

from app.db.models import MediaTypeEnum
from app.services.rank_store import RankStore, media_type_value

logger = logging.getLogger(__name__)

# The podium (ranks 1-3) is not part of the drag-to-reorder range.
PINNED_TOP_COUNT = 3
DEFAULT_REORDER_START = PINNED_TOP_COUNT + 1


class InvalidReorderError(Exception):
    """Raised when a reorder request would break partition density."""


def check_density(items: Iterable[Any]) -> bool:
    """Return True if the ranks of *items* are exactly {1, ..., N}."""
    ranks = [item.rank for item in items]
    return sorted(ranks) == list(range(1, len(ranks) + 1))


def insert_at_rank(store: RankStore, item: Any, rank: int) -> Any:
    """
    Insert *item* at 1-based *rank* within its media-type partition.

    Existing items with rank >= *rank* move down by one. The shift is computed
    from the pre-insertion snapshot, then the new item is added.
    """
    partition = [i for i in store.list_partition(item.media_type) if i.id != item.id]
    max_rank = len(partition) + 1
    if rank < 1 or rank > max_rank:
        logger.warning(
            "Insertion rank %s outside 1..%s for %s; clamping",
            rank, max_rank, media_type_value(item.media_type),
        )
        rank = min(max(rank, 1), max_rank)

    shifted = 0
    for existing in partition:
        if existing.rank >= rank:
            if store.set_rank(existing.id, existing.rank + 1):
                shifted += 1
            else:
                logger.warning("Skipping missing item %s during insert shift", existing.id)

    item.rank = rank
    store.add(item)
    store.save()
    logger.debug(
        "Inserted %s at rank %s (%s shifted)", item.id, rank, shifted
    )
    return item


def shift_after_deletion(
    store: RankStore,
    deleted_id: UUID,
    deleted_rank: int,
    media_type: MediaTypeEnum | str,
) -> int:
    """
    Close the gap left by a deleted item.

    Call after the item has been removed from the store. *deleted_id* is
    excluded explicitly because some stores still return it until flushed.
    Only a real gap is closed: a rank below 1, or one still held by another
    item (the shift already ran), shifts nothing. That makes a repeated call
    safe. Returns the number of items shifted.
    """
    partition = [i for i in store.list_partition(media_type) if i.id != deleted_id]
    if deleted_rank < 1 or any(i.rank == deleted_rank for i in partition):
        logger.debug(
            "No gap at rank %s in %s; nothing to shift",
            deleted_rank, media_type_value(media_type),
        )
        return 0

    shifted = 0
    for existing in partition:
        if existing.rank < deleted_rank:
            continue
        if store.set_rank(existing.id, existing.rank - 1):
            shifted += 1
        else:
            logger.warning("Skipping missing item %s during delete shift", existing.id)

    store.save()
    logger.debug(
        "Closed gap at rank %s in %s (%s shifted)",
        deleted_rank, media_type_value(media_type), shifted,
    )
    return shifted


def reorder_range(
    store: RankStore,
    media_type: MediaTypeEnum | str,
    ordered_ids: list[UUID],
    starting_rank: int = DEFAULT_REORDER_START,
) -> int:
    """
    Reassign ranks for a contiguous sub-range in its new visual order.

    *ordered_ids* is the sub-range after the drag; ranks are handed out
    sequentially from *starting_rank*. Items outside the sub-range are left
    untouched. Ids that vanished from the store are skipped.
    Returns the number of items whose rank was written.
    """
    if starting_rank < 1:
        raise InvalidReorderError("starting_rank must be >= 1")
    if len(set(ordered_ids)) != len(ordered_ids):
        raise InvalidReorderError("ordered_ids contains duplicates")

    partition = store.list_partition(media_type)
    by_id = {item.id: item for item in partition}
    present = [item_id for item_id in ordered_ids if item_id in by_id]

    expected_ranks = set(range(starting_rank, starting_rank + len(present)))
    current_ranks = {by_id[item_id].rank for item_id in present}
    if current_ranks != expected_ranks:
        raise InvalidReorderError(
            f"Items must occupy ranks {starting_rank}..{starting_rank + len(present) - 1}"
        )

    written = 0
    for offset, item_id in enumerate(present):
        if store.set_rank(item_id, starting_rank + offset):
            written += 1

    store.save()
    logger.debug(
        "Reordered %s items in %s from rank %s",
        written, media_type_value(media_type), starting_rank,
    )
    return written


def compact_partition(store: RankStore, media_type: MediaTypeEnum | str) -> int:
    """
    Renumber a partition to 1..N, preserving its current order.

    Repairs gaps or duplicates left behind by interrupted writes. Ties keep
    the store's order. Returns the number of ranks changed.
    """
    changed = 0
    for new_rank, item in enumerate(store.list_partition(media_type), start=1):
        if item.rank != new_rank and store.set_rank(item.id, new_rank):
            changed += 1

    if changed:
        store.save()
        logger.info(
            "Compacted %s partition (%s ranks changed)",
            media_type_value(media_type), changed,
        )
    return changed
