import random
import unittest
from types import SimpleNamespace
from uuid import uuid4

from app.db.models import MediaTypeEnum, TierEnum
from app.services.rank_maintainer import (
    InvalidReorderError,
    check_density,
    compact_partition,
    insert_at_rank,
    reorder_range,
    shift_after_deletion,
)
from app.services.rank_store import InMemoryRankStore
from app.services.ranking_service import delete_item


def _item(rank: int, media_type: MediaTypeEnum = MediaTypeEnum.MOVIE, title: str | None = None):
    return SimpleNamespace(
        id=uuid4(),
        catalog_id=random.randint(1, 10**9),
        title=title or f"Title {rank}",
        media_type=media_type,
        tier=TierEnum.GOOD,
        rank=rank,
    )


def _titles(store: InMemoryRankStore, media_type: MediaTypeEnum = MediaTypeEnum.MOVIE) -> list[str]:
    return [i.title for i in store.list_partition(media_type)]


def _ranks(store: InMemoryRankStore, media_type: MediaTypeEnum = MediaTypeEnum.MOVIE) -> list[int]:
    return [i.rank for i in store.list_partition(media_type)]


class FlakyStore(InMemoryRankStore):
    """Reports one record as already gone when it is shifted."""

    def __init__(self, items, vanished_id) -> None:
        super().__init__(items)
        self.vanished_id = vanished_id

    def set_rank(self, item_id, rank) -> bool:
        if item_id == self.vanished_id:
            return False
        return super().set_rank(item_id, rank)


class TestInsertAtRank(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryRankStore([_item(r, title=t) for r, t in ((1, "A"), (2, "B"), (3, "C"))])

    def test_insert_in_middle_shifts_lower_items(self) -> None:
        insert_at_rank(self.store, _item(0, title="New"), 2)
        self.assertEqual(_titles(self.store), ["A", "New", "B", "C"])
        self.assertEqual(_ranks(self.store), [1, 2, 3, 4])
        self.assertEqual(self.store.save_count, 1)

    def test_insert_at_top_and_bottom(self) -> None:
        insert_at_rank(self.store, _item(0, title="Top"), 1)
        insert_at_rank(self.store, _item(0, title="Bottom"), 5)
        self.assertEqual(_titles(self.store), ["Top", "A", "B", "C", "Bottom"])
        self.assertTrue(check_density(self.store.list_all()))

    def test_out_of_range_rank_is_clamped(self) -> None:
        with self.assertLogs("app.services.rank_maintainer", level="WARNING"):
            item = insert_at_rank(self.store, _item(0, title="Far"), 42)
        self.assertEqual(item.rank, 4)
        self.assertEqual(_ranks(self.store), [1, 2, 3, 4])

    def test_other_media_type_untouched(self) -> None:
        show = _item(1, media_type=MediaTypeEnum.SHOW, title="Show")
        self.store.add(show)
        insert_at_rank(self.store, _item(0, title="New"), 1)
        self.assertEqual(show.rank, 1)
        self.assertEqual(_ranks(self.store, MediaTypeEnum.SHOW), [1])


class TestShiftAfterDeletion(unittest.TestCase):
    def test_delete_rank_two_of_four(self) -> None:
        items = [_item(r, title=t) for r, t in ((1, "A"), (2, "B"), (3, "C"), (4, "D"))]
        store = InMemoryRankStore(items)

        self.assertTrue(delete_item(store, items[1].id))

        self.assertEqual(_titles(store), ["A", "C", "D"])
        self.assertEqual(_ranks(store), [1, 2, 3])

    def test_deleting_absent_id_is_noop(self) -> None:
        store = InMemoryRankStore([_item(r) for r in (1, 2, 3)])
        self.assertFalse(delete_item(store, uuid4()))
        self.assertEqual(_ranks(store), [1, 2, 3])

    def test_stale_rank_shifts_nothing(self) -> None:
        store = InMemoryRankStore([_item(r) for r in (1, 2, 3)])
        shifted = shift_after_deletion(store, uuid4(), 10, MediaTypeEnum.MOVIE)
        self.assertEqual(shifted, 0)
        self.assertEqual(_ranks(store), [1, 2, 3])

    def test_deleted_id_excluded_even_if_store_still_returns_it(self) -> None:
        items = [_item(r) for r in (1, 2, 3)]
        store = InMemoryRankStore(items)
        # Item at rank 2 not yet removed from the store
        shift_after_deletion(store, items[1].id, 2, MediaTypeEnum.MOVIE)
        self.assertEqual(items[1].rank, 2)
        self.assertEqual(items[2].rank, 2)

    def test_missing_record_is_skipped(self) -> None:
        # Rank 1 was deleted; rank 3 vanishes mid-shift
        items = [_item(r) for r in (2, 3, 4, 5)]
        store = FlakyStore(items, vanished_id=items[1].id)
        with self.assertLogs("app.services.rank_maintainer", level="WARNING"):
            shifted = shift_after_deletion(store, uuid4(), 1, MediaTypeEnum.MOVIE)
        self.assertEqual(shifted, 3)
        self.assertEqual(items[0].rank, 1)
        self.assertEqual(items[3].rank, 4)

    def test_rank_below_one_shifts_nothing(self) -> None:
        store = InMemoryRankStore([_item(r) for r in (1, 2, 3)])
        self.assertEqual(shift_after_deletion(store, uuid4(), 0, MediaTypeEnum.MOVIE), 0)
        self.assertEqual(shift_after_deletion(store, uuid4(), -3, MediaTypeEnum.MOVIE), 0)
        self.assertEqual(_ranks(store), [1, 2, 3])
        self.assertEqual(store.save_count, 0)

    def test_repeated_shift_is_a_noop(self) -> None:
        items = [_item(r) for r in (1, 2, 3, 4)]
        store = InMemoryRankStore(items)
        store.remove(items[1].id)

        self.assertEqual(shift_after_deletion(store, items[1].id, 2, MediaTypeEnum.MOVIE), 2)
        self.assertEqual(shift_after_deletion(store, items[1].id, 2, MediaTypeEnum.MOVIE), 0)
        self.assertEqual(_ranks(store), [1, 2, 3])
        self.assertTrue(check_density(store.list_all()))


class TestReorderRange(unittest.TestCase):
    def setUp(self) -> None:
        self.items = [_item(r, title=str(r)) for r in range(1, 7)]
        self.store = InMemoryRankStore(self.items)

    def test_reorders_sub_range_from_starting_rank(self) -> None:
        by_rank = {i.rank: i for i in self.items}
        new_order = [by_rank[6].id, by_rank[4].id, by_rank[5].id]

        written = reorder_range(self.store, MediaTypeEnum.MOVIE, new_order, starting_rank=4)

        self.assertEqual(written, 3)
        self.assertEqual(_titles(self.store), ["1", "2", "3", "6", "4", "5"])
        self.assertTrue(check_density(self.store.list_all()))

    def test_default_start_leaves_podium_untouched(self) -> None:
        by_rank = {i.rank: i for i in self.items}
        reorder_range(self.store, MediaTypeEnum.MOVIE, [by_rank[r].id for r in (5, 6, 4)])
        self.assertEqual(_titles(self.store)[:3], ["1", "2", "3"])
        self.assertEqual(_titles(self.store)[3:], ["5", "6", "4"])

    def test_rejects_ids_outside_range(self) -> None:
        by_rank = {i.rank: i for i in self.items}
        with self.assertRaises(InvalidReorderError):
            reorder_range(self.store, MediaTypeEnum.MOVIE, [by_rank[1].id, by_rank[5].id], 4)
        self.assertEqual(_ranks(self.store), [1, 2, 3, 4, 5, 6])

    def test_rejects_duplicates(self) -> None:
        item_id = self.items[4].id
        with self.assertRaises(InvalidReorderError):
            reorder_range(self.store, MediaTypeEnum.MOVIE, [item_id, item_id], 5)

    def test_unknown_ids_are_skipped(self) -> None:
        by_rank = {i.rank: i for i in self.items}
        written = reorder_range(
            self.store, MediaTypeEnum.MOVIE, [by_rank[6].id, uuid4(), by_rank[5].id], 5
        )
        self.assertEqual(written, 2)
        self.assertEqual(_titles(self.store)[4:], ["6", "5"])


class TestCompactPartition(unittest.TestCase):
    def test_closes_gaps_preserving_order(self) -> None:
        store = InMemoryRankStore([_item(r, title=str(r)) for r in (1, 3, 7)])
        self.assertEqual(compact_partition(store, MediaTypeEnum.MOVIE), 2)
        self.assertEqual(_titles(store), ["1", "3", "7"])
        self.assertEqual(_ranks(store), [1, 2, 3])

    def test_dense_partition_is_unchanged(self) -> None:
        store = InMemoryRankStore([_item(r) for r in (1, 2)])
        self.assertEqual(compact_partition(store, MediaTypeEnum.MOVIE), 0)
        self.assertEqual(store.save_count, 0)


class TestDensityProperty(unittest.TestCase):
    def test_random_mutation_sequences_keep_partitions_dense(self) -> None:
        rng = random.Random(20261019)
        store = InMemoryRankStore()

        for _ in range(400):
            media_type = rng.choice(list(MediaTypeEnum))
            partition = store.list_partition(media_type)
            action = rng.random()

            if action < 0.5 or not partition:
                insert_at_rank(store, _item(0, media_type=media_type), rng.randint(1, len(partition) + 1))
            elif action < 0.8:
                delete_item(store, rng.choice(partition).id)
            else:
                start = rng.randint(1, len(partition))
                sub = [i.id for i in partition[start - 1:]]
                rng.shuffle(sub)
                reorder_range(store, media_type, sub, start)

            for mt in MediaTypeEnum:
                self.assertTrue(check_density(store.list_partition(mt)))


if __name__ == "__main__":
    unittest.main()
