import unittest
from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

from app.db.models import MediaTypeEnum, TierEnum
from app.services.taste_service import ARCHETYPE_RULES, Archetype, classify

NOW = datetime(2026, 10, 19, tzinfo=timezone.utc)


def _item(
    tier: TierEnum = TierEnum.GOOD,
    media_type: MediaTypeEnum = MediaTypeEnum.MOVIE,
    genres: list[str] | None = None,
    release_date: str | None = "2015-05-01",
):
    return SimpleNamespace(
        id=uuid4(),
        tier=tier,
        media_type=media_type,
        genre_names=genres or [],
        release_date=release_date,
        rank=1,
    )


def _mixed_tiers(count: int) -> list[TierEnum]:
    """Half good, rest medium then bad: never Critic or Enthusiast."""
    good = (count + 1) // 2
    rest = count - good
    return [TierEnum.GOOD] * good + [TierEnum.MEDIUM] * (rest - rest // 2) + [TierEnum.BAD] * (rest // 2)


def _collection(genres: list[list[str]], **kwargs) -> list[SimpleNamespace]:
    tiers = _mixed_tiers(len(genres))
    return [_item(tier=t, genres=g, **kwargs) for t, g in zip(tiers, genres)]


class TestGuard(unittest.TestCase):
    def test_empty_collection(self) -> None:
        result = classify([], now=NOW)
        self.assertEqual(result.archetype, Archetype.GETTING_STARTED)
        self.assertEqual(result.supporting_facts, ["Rank 5 more to unlock your personality"])
        self.assertEqual(result.dna.average_score, 0.0)
        self.assertEqual(result.dna.top_genres, [])

    def test_four_items_still_getting_started(self) -> None:
        result = classify([_item(TierEnum.BAD)] * 4, now=NOW)
        self.assertEqual(result.archetype, Archetype.GETTING_STARTED)
        self.assertEqual(result.supporting_facts, ["Rank 1 more to unlock your personality"])
        self.assertEqual(result.dna.pickiness_percent, 100)


class TestArchetypes(unittest.TestCase):
    def test_enthusiast_beats_eclectic(self) -> None:
        items = [_item(TierEnum.GOOD) for _ in range(5)] + [_item(TierEnum.BAD)]
        result = classify(items, now=NOW)
        self.assertEqual(result.archetype, Archetype.ENTHUSIAST)
        self.assertIn("83% of your items are green tier", result.supporting_facts)
        self.assertIn("5 items you love out of 6", result.supporting_facts)

    def test_critic(self) -> None:
        items = [_item(TierEnum.GOOD)] + [_item(TierEnum.MEDIUM)] * 3 + [_item(TierEnum.BAD)] * 2
        result = classify(items, now=NOW)
        self.assertEqual(result.archetype, Archetype.CRITIC)
        self.assertEqual(result.supporting_facts[0], "Only 16% of your items are green tier")

    def test_critic_wins_over_genre_dominance(self) -> None:
        items = [_item(TierEnum.GOOD, genres=["Horror"])] + [
            _item(TierEnum.BAD, genres=["Horror"]) for _ in range(5)
        ]
        self.assertEqual(classify(items, now=NOW).archetype, Archetype.CRITIC)

    def test_binge_watcher(self) -> None:
        tiers = _mixed_tiers(7)
        items = [
            _item(tier, media_type=MediaTypeEnum.SHOW if i < 5 else MediaTypeEnum.MOVIE)
            for i, tier in enumerate(tiers)
        ]
        result = classify(items, now=NOW)
        self.assertEqual(result.archetype, Archetype.BINGE_WATCHER)
        self.assertEqual(result.supporting_facts[0], "5 TV shows vs 2 movies")

    def test_horror_buff(self) -> None:
        items = _collection([["Horror"]] * 4 + [["Comedy"], ["Drama"]])
        result = classify(items, now=NOW)
        self.assertEqual(result.archetype, Archetype.HORROR_BUFF)
        self.assertEqual(result.supporting_facts[1], "4 horror titles ranked")

    def test_comedy_lover_matches_case_insensitively(self) -> None:
        items = _collection([["COMEDY"]] * 3 + [["Drama"], ["Action"], []])
        self.assertEqual(classify(items, now=NOW).archetype, Archetype.COMEDY_LOVER)

    def test_drama_queen(self) -> None:
        items = _collection([["Drama", "Romance"]] * 4 + [["Comedy"], ["Thriller"]])
        result = classify(items, now=NOW)
        self.assertEqual(result.archetype, Archetype.DRAMA_QUEEN)
        self.assertTrue(result.supporting_facts[2].startswith("Average score: "))

    def test_dominant_blockbuster_genre(self) -> None:
        items = _collection([["Science Fiction"]] * 3 + [["Drama"], ["Comedy"], ["Romance"]])
        result = classify(items, now=NOW)
        self.assertEqual(result.archetype, Archetype.BLOCKBUSTER_FAN)
        self.assertEqual(result.supporting_facts[0], "50% action/adventure/sci-fi")

    def test_combined_blockbuster_share(self) -> None:
        # No single genre above 40%, but action+adventure+sci-fi is 4/6
        items = _collection(
            [["Action"], ["Action"], ["Adventure"], ["Science Fiction"], ["Drama"], ["Comedy"]]
        )
        result = classify(items, now=NOW)
        self.assertEqual(result.archetype, Archetype.BLOCKBUSTER_FAN)
        self.assertEqual(result.supporting_facts[0], "67% action, adventure, or sci-fi")

    def test_nostalgist(self) -> None:
        items = _collection([[]] * 6, release_date="1994-09-23")
        result = classify(items, now=NOW)
        self.assertEqual(result.archetype, Archetype.NOSTALGIST)
        self.assertIn("Favorite decade: 1990s", result.supporting_facts)

    def test_trendsetter_uses_now(self) -> None:
        tiers = _mixed_tiers(6)
        dates = ["2024-01-01", "2025-05-05", "2026-02-02", "2024-12-12", "2015-01-01", "2016-01-01"]
        items = [_item(t, release_date=d) for t, d in zip(tiers, dates)]

        self.assertEqual(classify(items, now=NOW).archetype, Archetype.TRENDSETTER)
        # Ten years later the same titles are no longer recent
        later = datetime(2036, 1, 1, tzinfo=timezone.utc)
        self.assertEqual(classify(items, now=later).archetype, Archetype.ECLECTIC)

    def test_cinephile_after_non_special_dominant_genre(self) -> None:
        items = _collection([["Thriller"]] * 3 + [["Drama"], ["Drama"], ["History"]])
        result = classify(items, now=NOW)
        self.assertEqual(result.archetype, Archetype.CINEPHILE)
        self.assertEqual(result.supporting_facts[1], "50% drama, history, or documentary")

    def test_eclectic_fallback(self) -> None:
        media = [MediaTypeEnum.MOVIE, MediaTypeEnum.SHOW] * 3
        genres = [["Action"], ["Comedy"], ["Drama"], ["Horror"], ["Romance"], ["Animation"]]
        tiers = _mixed_tiers(6)
        items = [_item(t, media_type=m, genres=g) for t, m, g in zip(tiers, media, genres)]
        result = classify(items, now=NOW)
        self.assertEqual(result.archetype, Archetype.ECLECTIC)
        self.assertEqual(result.supporting_facts[0], "6 different genres ranked")
        self.assertEqual(result.supporting_facts[1], "3 movies, 3 TV shows")

    def test_last_rule_is_unconditional_fallback(self) -> None:
        self.assertEqual(ARCHETYPE_RULES[-1].archetype, Archetype.ECLECTIC)
        self.assertEqual(ARCHETYPE_RULES[0].archetype, Archetype.CRITIC)


class TestTasteDNA(unittest.TestCase):
    def test_dna_aggregates(self) -> None:
        items = [
            _item(TierEnum.GOOD, genres=["Drama", "Crime", "Thriller"], release_date="1972-03-24"),
            _item(TierEnum.GOOD, genres=["Drama"], release_date="1994-09-23"),
            _item(TierEnum.MEDIUM, genres=["Comedy"], release_date="1999-01-01"),
            _item(TierEnum.BAD, media_type=MediaTypeEnum.SHOW, genres=[], release_date=None),
            _item(TierEnum.BAD, media_type=MediaTypeEnum.SHOW, genres=["Drama"], release_date="n/a"),
        ]
        dna = classify(items, now=NOW).dna

        self.assertEqual(dna.top_genres[0].name, "Drama")
        # 3 of the 4 genre-tagged items carry Drama
        self.assertEqual(dna.top_genres[0].percentage, 75)
        self.assertEqual(len(dna.top_genres), 3)
        self.assertAlmostEqual(dna.average_score, (3 + 3 + 2 + 1 + 1) / 5)
        self.assertEqual(dna.pickiness_percent, 40)
        self.assertEqual(dna.favorite_decade, "1990s")
        self.assertEqual(dna.movie_count, 3)
        self.assertEqual(dna.show_count, 2)

    def test_classify_is_pure(self) -> None:
        items = [_item(TierEnum.GOOD, genres=["Drama"]) for _ in range(6)]
        first = classify(items, now=NOW)
        second = classify(items, now=NOW)
        self.assertEqual(first, second)
        self.assertEqual(items[0].genre_names, ["Drama"])


if __name__ == "__main__":
    unittest.main()
