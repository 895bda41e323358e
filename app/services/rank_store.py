"""
Rank Store accessor.

The ranking engine never talks to a database directly. It reads and writes
ranked-item records through this small repository interface so that the same
code runs against SQLAlchemy (app.db.repository) or the in-memory fake below.

Records are any objects exposing the RankedItem attributes (id, catalog_id,
media_type, tier, rank, ...).
"""
from typing import Any, Protocol
from uuid import UUID

from app.db.models import MediaTypeEnum


def media_type_value(media_type: Any) -> str:
    """Normalize an enum member or raw string to its stored value."""
    return media_type.value if hasattr(media_type, "value") else str(media_type)


class RankStore(Protocol):
    def list_all(self) -> list[Any]: ...

    def list_partition(self, media_type: MediaTypeEnum | str) -> list[Any]: ...

    def get(self, item_id: UUID) -> Any | None: ...

    def find_by_catalog(
        self, catalog_id: int, media_type: MediaTypeEnum | str
    ) -> Any | None: ...

    def add(self, item: Any) -> Any: ...

    def remove(self, item_id: UUID) -> Any | None: ...

    def set_rank(self, item_id: UUID, rank: int) -> bool: ...

    def save(self) -> None: ...


class InMemoryRankStore:
    """Dict-backed RankStore. Insertion order is preserved for list_all()."""

    def __init__(self, items: list[Any] | None = None) -> None:
        self._items: dict[UUID, Any] = {}
        self.save_count = 0
        for item in items or []:
            self._items[item.id] = item

    def list_all(self) -> list[Any]:
        return list(self._items.values())

    def list_partition(self, media_type: MediaTypeEnum | str) -> list[Any]:
        wanted = media_type_value(media_type)
        return sorted(
            (i for i in self._items.values() if media_type_value(i.media_type) == wanted),
            key=lambda i: i.rank,
        )

    def get(self, item_id: UUID) -> Any | None:
        return self._items.get(item_id)

    def find_by_catalog(
        self, catalog_id: int, media_type: MediaTypeEnum | str
    ) -> Any | None:
        wanted = media_type_value(media_type)
        return next(
            (
                i for i in self._items.values()
                if i.catalog_id == catalog_id and media_type_value(i.media_type) == wanted
            ),
            None,
        )

    def add(self, item: Any) -> Any:
        self._items[item.id] = item
        return item

    def remove(self, item_id: UUID) -> Any | None:
        return self._items.pop(item_id, None)

    def set_rank(self, item_id: UUID, rank: int) -> bool:
        item = self._items.get(item_id)
        if item is None:
            return False
        item.rank = rank
        return True

    def save(self) -> None:
        self.save_count += 1
