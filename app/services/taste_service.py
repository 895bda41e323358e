"""
Taste personality computation service.

Derives a "taste archetype" and aggregate DNA stats from the user's ranked
collection. Pure and total: never writes, never raises.

Archetype rules are evaluated in a fixed order and the first match wins.
Several predicates can hold at once (a horror fan can also be an enthusiast),
so the order of ARCHETYPE_RULES is part of the behaviour:

  1. Critic         green < 25% and yellow+red > 60%
  2. Enthusiast     green > 70%
  3. Binge Watcher  shows > 65%
  4. Genre-dominant one genre > 40% of genre-tagged items
                    (horror, comedy, drama, or action/adventure/sci-fi)
  5. Blockbuster    action+adventure+sci-fi > 45% combined
  6. Nostalgist     pre-2010 > 60% of dated items
  7. Trendsetter    last two years > 50% of dated items
  8. Cinephile      movies > 70% and drama/history/war/documentary > 30%
  9. Eclectic       always
"""
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable

from app.db.models import MediaTypeEnum, TierEnum, release_year
from app.services.rank_store import media_type_value
from app.services.ranking_math import tier_value

MIN_ITEMS_FOR_ARCHETYPE = 5
NOSTALGIA_CUTOFF_YEAR = 2010
RECENT_WINDOW_YEARS = 2

BLOCKBUSTER_GENRES = ("Action", "Adventure", "Science Fiction")
CINEPHILE_GENRES = ("Drama", "History", "War", "Documentary")

# Simple 1-3 scale: good=3, medium=2, bad=1
TIER_POINTS = {
    TierEnum.GOOD.value: 3,
    TierEnum.MEDIUM.value: 2,
    TierEnum.BAD.value: 1,
}


class Archetype(str, Enum):
    CINEPHILE = "The Cinephile"
    BINGE_WATCHER = "The Binge Watcher"
    BLOCKBUSTER_FAN = "The Blockbuster Fan"
    CRITIC = "The Critic"
    ENTHUSIAST = "The Enthusiast"
    ECLECTIC = "The Eclectic"
    NOSTALGIST = "The Nostalgist"
    TRENDSETTER = "The Trendsetter"
    HORROR_BUFF = "The Horror Buff"
    COMEDY_LOVER = "The Comedy Lover"
    DRAMA_QUEEN = "The Drama Queen"
    GETTING_STARTED = "Getting Started"

    @property
    def description(self) -> str:
        return ARCHETYPE_DESCRIPTIONS[self]


ARCHETYPE_DESCRIPTIONS: dict[Archetype, str] = {
    Archetype.CINEPHILE: "You gravitate toward cinema as art. Dramas, indie gems, and thoughtful storytelling define your taste.",
    Archetype.BINGE_WATCHER: "Series are your world. You love character arcs that unfold over seasons, not just hours.",
    Archetype.BLOCKBUSTER_FAN: "Big screen, big action, big fun. You live for the spectacle and never apologize for it.",
    Archetype.CRITIC: "High standards, refined taste. You don't hand out praise easily, and that makes your favorites mean more.",
    Archetype.ENTHUSIAST: "You find joy in almost everything you watch. Your green tier is stacked.",
    Archetype.ECLECTIC: "No genre can contain you. Your taste spans everything, film and TV alike.",
    Archetype.NOSTALGIST: "The classics never get old for you. You appreciate the foundations of modern entertainment.",
    Archetype.TRENDSETTER: "Always watching what's new. You're ranking what matters now.",
    Archetype.HORROR_BUFF: "You thrive in the dark. Horror isn't just a genre to you.",
    Archetype.COMEDY_LOVER: "Laughter is the best medicine, and your rankings prove it.",
    Archetype.DRAMA_QUEEN: "Emotional depth is everything. You're drawn to stories that make you feel deeply.",
    Archetype.GETTING_STARTED: "Rank more titles to discover your taste personality.",
}


# ── Results ──────────────────────────────────────────────────────────────────


@dataclass
class GenreShare:
    name: str
    percentage: int


@dataclass
class TasteDNA:
    top_genres: list[GenreShare]
    average_score: float          # 1.0–3.0 scale, 0.0 with no items
    pickiness_percent: int        # % bad tier
    favorite_decade: str | None   # e.g. "2010s"
    movie_count: int
    show_count: int


@dataclass
class TasteResult:
    archetype: Archetype
    supporting_facts: list[str]
    dna: TasteDNA


# ── Aggregates ───────────────────────────────────────────────────────────────


def _round_percent(part: int, whole: int) -> int:
    """Percentage rounded half up; 0 when *whole* is 0."""
    if whole <= 0:
        return 0
    return math.floor(part / whole * 100 + 0.5)


def _truncated_percent(fraction: float) -> int:
    return int(fraction * 100)


@dataclass
class TasteStats:
    """Aggregates computed once per classify() call and shared by every rule."""

    total: int
    movie_count: int
    show_count: int
    good_count: int
    medium_count: int
    bad_count: int
    genre_counts: list[tuple[str, int]]
    genre_tagged_count: int
    decade_counts: list[tuple[str, int]]
    dated_count: int
    pre_cutoff_count: int
    recent_count: int
    top_genres: list[GenreShare] = field(default_factory=list)

    @classmethod
    def from_items(cls, items: list[Any], now: datetime) -> "TasteStats":
        tiers = Counter(tier_value(i.tier) for i in items)
        media = Counter(media_type_value(i.media_type) for i in items)

        genres: Counter = Counter()
        genre_tagged = 0
        for item in items:
            names = list(getattr(item, "genre_names", None) or [])
            if not names:
                continue
            genre_tagged += 1
            for name in names:
                genres[name] += 1

        years = [
            y for y in (release_year(getattr(i, "release_date", None)) for i in items)
            if y is not None
        ]
        decades = Counter(f"{(y // 10) * 10}s" for y in years)
        recent_from = now.year - RECENT_WINDOW_YEARS

        genre_counts = genres.most_common()
        top_genres = [
            GenreShare(name=name, percentage=_round_percent(count, genre_tagged))
            for name, count in genre_counts[:3]
        ] if genre_tagged else []

        return cls(
            total=len(items),
            movie_count=media[MediaTypeEnum.MOVIE.value],
            show_count=media[MediaTypeEnum.SHOW.value],
            good_count=tiers[TierEnum.GOOD.value],
            medium_count=tiers[TierEnum.MEDIUM.value],
            bad_count=tiers[TierEnum.BAD.value],
            genre_counts=genre_counts,
            genre_tagged_count=genre_tagged,
            decade_counts=decades.most_common(),
            dated_count=len(years),
            pre_cutoff_count=sum(1 for y in years if y < NOSTALGIA_CUTOFF_YEAR),
            recent_count=sum(1 for y in years if y >= recent_from),
            top_genres=top_genres,
        )

    # Fractions of the whole collection. Only read when total >= 5.

    @property
    def green_fraction(self) -> float:
        return self.good_count / self.total

    @property
    def yellow_red_fraction(self) -> float:
        return (self.medium_count + self.bad_count) / self.total

    @property
    def show_fraction(self) -> float:
        return self.show_count / self.total

    @property
    def movie_fraction(self) -> float:
        return self.movie_count / self.total

    @property
    def average_score(self) -> float:
        if self.total == 0:
            return 0.0
        points = (
            self.good_count * TIER_POINTS[TierEnum.GOOD.value]
            + self.medium_count * TIER_POINTS[TierEnum.MEDIUM.value]
            + self.bad_count * TIER_POINTS[TierEnum.BAD.value]
        )
        return points / self.total

    @property
    def favorite_decade(self) -> str | None:
        return self.decade_counts[0][0] if self.decade_counts else None

    @property
    def dominant_genre(self) -> tuple[str, int] | None:
        return self.genre_counts[0] if self.genre_counts else None

    @property
    def dominance_fraction(self) -> float:
        dominant = self.dominant_genre
        if dominant is None or self.genre_tagged_count == 0:
            return 0.0
        return dominant[1] / self.genre_tagged_count

    def genre_sum(self, names: Iterable[str]) -> int:
        wanted = set(names)
        return sum(count for name, count in self.genre_counts if name in wanted)

    def genre_share(self, names: Iterable[str]) -> float:
        if self.genre_tagged_count == 0:
            return 0.0
        return self.genre_sum(names) / self.genre_tagged_count

    def dated_share(self, count: int) -> float:
        if self.dated_count == 0:
            return 0.0
        return count / self.dated_count

    def dna(self) -> TasteDNA:
        return TasteDNA(
            top_genres=list(self.top_genres),
            average_score=self.average_score,
            pickiness_percent=_round_percent(self.bad_count, self.total),
            favorite_decade=self.favorite_decade,
            movie_count=self.movie_count,
            show_count=self.show_count,
        )


# ── Rules ────────────────────────────────────────────────────────────────────


def _top_genre_fact(stats: TasteStats, template: str) -> list[str]:
    if not stats.top_genres:
        return []
    top = stats.top_genres[0]
    return [template.format(name=top.name, percentage=top.percentage)]


def _decade_fact(stats: TasteStats) -> list[str]:
    if stats.favorite_decade is None:
        return []
    return [f"Favorite decade: {stats.favorite_decade}"]


def _dominant_is(*names: str) -> Callable[[TasteStats], bool]:
    def predicate(stats: TasteStats) -> bool:
        dominant = stats.dominant_genre
        return (
            dominant is not None
            and stats.dominance_fraction > 0.40
            and dominant[0].lower() in names
        )
    return predicate


def _critic_facts(s: TasteStats) -> list[str]:
    return [
        f"Only {_truncated_percent(s.green_fraction)}% of your items are green tier",
        f"{_truncated_percent(s.yellow_red_fraction)}% rated yellow or red",
        *_top_genre_fact(s, "Top genre: {name} ({percentage}%)"),
    ]


def _enthusiast_facts(s: TasteStats) -> list[str]:
    return [
        f"{_truncated_percent(s.green_fraction)}% of your items are green tier",
        f"{s.good_count} items you love out of {s.total}",
        *_top_genre_fact(s, "Favorite genre: {name}"),
    ]


def _binge_facts(s: TasteStats) -> list[str]:
    return [
        f"{s.show_count} TV shows vs {s.movie_count} movies",
        f"{_truncated_percent(s.show_fraction)}% of your rankings are TV",
        *_top_genre_fact(s, "Top genre: {name}"),
    ]


def _horror_facts(s: TasteStats) -> list[str]:
    return [
        f"{_truncated_percent(s.dominance_fraction)}% of your items are Horror",
        f"{s.dominant_genre[1]} horror titles ranked",
        f"{s.movie_count} movies, {s.show_count} TV shows",
    ]


def _comedy_facts(s: TasteStats) -> list[str]:
    return [
        f"{_truncated_percent(s.dominance_fraction)}% of your items are Comedy",
        f"{s.dominant_genre[1]} comedies ranked",
        *_decade_fact(s),
    ]


def _drama_facts(s: TasteStats) -> list[str]:
    return [
        f"{_truncated_percent(s.dominance_fraction)}% of your items are Drama",
        f"{s.dominant_genre[1]} dramas ranked",
        f"Average score: {s.average_score:.1f}/3.0",
    ]


def _dominant_blockbuster_facts(s: TasteStats) -> list[str]:
    return [
        f"{_truncated_percent(s.dominance_fraction)}% action/adventure/sci-fi",
        f"{s.dominant_genre[1]} blockbuster titles",
        f"{s.movie_count} movies ranked",
    ]


def _combined_blockbuster_facts(s: TasteStats) -> list[str]:
    count = s.genre_sum(BLOCKBUSTER_GENRES)
    return [
        f"{_round_percent(count, s.genre_tagged_count)}% action, adventure, or sci-fi",
        f"{count} blockbuster titles ranked",
        f"{s.movie_count} movies, {s.show_count} TV shows",
    ]


def _nostalgist_facts(s: TasteStats) -> list[str]:
    return [
        f"{_round_percent(s.pre_cutoff_count, s.dated_count)}% of your items are from before {NOSTALGIA_CUTOFF_YEAR}",
        *_decade_fact(s),
        f"{s.pre_cutoff_count} classic titles ranked",
    ]


def _trendsetter_facts(s: TasteStats) -> list[str]:
    return [
        f"{_round_percent(s.recent_count, s.dated_count)}% of your items are from the last {RECENT_WINDOW_YEARS} years",
        f"{s.recent_count} recent releases ranked",
        *_top_genre_fact(s, "Top genre: {name}"),
    ]


def _cinephile_facts(s: TasteStats) -> list[str]:
    return [
        f"{s.movie_count} movies vs {s.show_count} TV shows",
        f"{_round_percent(s.genre_sum(CINEPHILE_GENRES), s.genre_tagged_count)}% drama, history, or documentary",
        f"Average score: {s.average_score:.1f}/3.0",
    ]


def _eclectic_facts(s: TasteStats) -> list[str]:
    return [
        f"{len(s.genre_counts)} different genres ranked",
        f"{s.movie_count} movies, {s.show_count} TV shows",
        *_decade_fact(s),
    ]


@dataclass(frozen=True)
class ArchetypeRule:
    archetype: Archetype
    matches: Callable[[TasteStats], bool]
    facts: Callable[[TasteStats], list[str]]


ARCHETYPE_RULES: list[ArchetypeRule] = [
    ArchetypeRule(
        Archetype.CRITIC,
        lambda s: s.green_fraction < 0.25 and s.yellow_red_fraction > 0.60,
        _critic_facts,
    ),
    ArchetypeRule(
        Archetype.ENTHUSIAST,
        lambda s: s.green_fraction > 0.70,
        _enthusiast_facts,
    ),
    ArchetypeRule(
        Archetype.BINGE_WATCHER,
        lambda s: s.show_fraction > 0.65,
        _binge_facts,
    ),
    ArchetypeRule(Archetype.HORROR_BUFF, _dominant_is("horror"), _horror_facts),
    ArchetypeRule(Archetype.COMEDY_LOVER, _dominant_is("comedy"), _comedy_facts),
    ArchetypeRule(Archetype.DRAMA_QUEEN, _dominant_is("drama"), _drama_facts),
    ArchetypeRule(
        Archetype.BLOCKBUSTER_FAN,
        _dominant_is("action", "adventure", "science fiction"),
        _dominant_blockbuster_facts,
    ),
    ArchetypeRule(
        Archetype.BLOCKBUSTER_FAN,
        lambda s: s.genre_share(BLOCKBUSTER_GENRES) > 0.45,
        _combined_blockbuster_facts,
    ),
    ArchetypeRule(
        Archetype.NOSTALGIST,
        lambda s: s.dated_share(s.pre_cutoff_count) > 0.60,
        _nostalgist_facts,
    ),
    ArchetypeRule(
        Archetype.TRENDSETTER,
        lambda s: s.dated_share(s.recent_count) > 0.50,
        _trendsetter_facts,
    ),
    ArchetypeRule(
        Archetype.CINEPHILE,
        lambda s: s.movie_fraction > 0.70 and s.genre_share(CINEPHILE_GENRES) > 0.30,
        _cinephile_facts,
    ),
    ArchetypeRule(Archetype.ECLECTIC, lambda s: True, _eclectic_facts),
]


def classify(items: Iterable[Any], now: datetime | None = None) -> TasteResult:
    """
    Return the archetype, supporting facts, and DNA for a collection.

    *now* anchors the "last two years" window; defaults to the current time.
    """
    items = list(items)
    now = now or datetime.now(timezone.utc)
    stats = TasteStats.from_items(items, now)
    dna = stats.dna()

    if stats.total < MIN_ITEMS_FOR_ARCHETYPE:
        remaining = MIN_ITEMS_FOR_ARCHETYPE - stats.total
        return TasteResult(
            archetype=Archetype.GETTING_STARTED,
            supporting_facts=[f"Rank {remaining} more to unlock your personality"],
            dna=dna,
        )

    # The last rule (Eclectic) always matches.
    rule = next(r for r in ARCHETYPE_RULES if r.matches(stats))
    return TasteResult(
        archetype=rule.archetype,
        supporting_facts=rule.facts(stats),
        dna=dna,
    )
