"""
Ranking Math Service
────────────────────
Maps an item's ordinal rank to a continuous 1–10 score.

Scores are never stored. They are recomputed on read from the item's position
inside its peer group (same tier and same media type), so any rank or tier
change shows up immediately without a migration.

Each tier owns a fixed, non-overlapping band:
  good    10.0 → 7.0
  medium   6.9 → 4.0
  bad      3.9 → 1.0

The best-ranked peer gets the band's high end, the worst-ranked peer gets the
low end, and everything in between is spaced linearly.
"""
from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable
from uuid import UUID

from app.db.models import TierEnum
from app.services.rank_store import media_type_value

# (high, low) per tier
TIER_SCORE_BANDS: dict[str, tuple[Decimal, Decimal]] = {
    TierEnum.GOOD.value: (Decimal("10.0"), Decimal("7.0")),
    TierEnum.MEDIUM.value: (Decimal("6.9"), Decimal("4.0")),
    TierEnum.BAD.value: (Decimal("3.9"), Decimal("1.0")),
}

EMPTY_PEER_GROUP_SCORE = 1.0
_ONE_DECIMAL = Decimal("0.1")


def tier_value(tier: Any) -> str:
    return tier.value if hasattr(tier, "value") else str(tier)


def _interpolate(high: Decimal, low: Decimal, index: int, count: int) -> float:
    raw = high - (high - low) * Decimal(index) / Decimal(count - 1)
    return float(raw.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def _score_in_group(item: Any, peers: list[Any]) -> float:
    """Score *item* against *peers*, already sorted ascending by rank."""
    count = len(peers)
    if count == 0:
        return EMPTY_PEER_GROUP_SCORE

    high, low = TIER_SCORE_BANDS[tier_value(item.tier)]
    index = next((i for i, p in enumerate(peers) if p.id == item.id), None)
    if count == 1 or index is None:
        # single item gets top of range
        return float(high)

    return _interpolate(high, low, index, count)


def peer_group(item: Any, all_items: Iterable[Any]) -> list[Any]:
    """Items sharing tier and media type with *item*, best rank first."""
    tier = tier_value(item.tier)
    media_type = media_type_value(item.media_type)
    return sorted(
        (
            i for i in all_items
            if tier_value(i.tier) == tier and media_type_value(i.media_type) == media_type
        ),
        key=lambda i: i.rank,
    )


def calculate_score(item: Any, all_items: Iterable[Any]) -> float:
    """
    Return the 1–10 score for *item*, rounded to one decimal place.

    *all_items* may contain the whole collection; it is filtered down to the
    item's peer group here. Never raises for well-formed items.
    """
    return _score_in_group(item, peer_group(item, all_items))


def calculate_all_scores(items: Iterable[Any]) -> dict[UUID, float]:
    """Score every item in one pass by pre-grouping on (tier, media type)."""
    grouped: dict[tuple[str, str], list[Any]] = defaultdict(list)
    for item in items:
        grouped[(tier_value(item.tier), media_type_value(item.media_type))].append(item)

    scores: dict[UUID, float] = {}
    for peers in grouped.values():
        peers.sort(key=lambda i: i.rank)
        count = len(peers)
        high, low = TIER_SCORE_BANDS[tier_value(peers[0].tier)]
        for index, peer in enumerate(peers):
            if count == 1:
                scores[peer.id] = float(high)
            else:
                scores[peer.id] = _interpolate(high, low, index, count)
    return scores


def bands_overlap() -> bool:
    """Return True if any two tier bands share a value."""
    bands = sorted(TIER_SCORE_BANDS.values(), key=lambda band: band[1])
    return any(lower[0] >= upper[1] for lower, upper in zip(bands, bands[1:]))
