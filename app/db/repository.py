"""
SQLAlchemy-backed RankStore.

Wraps a request-scoped Session. Mutations are flushed lazily and committed
in save(), so one rank shift is one transaction.
"""
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models import MediaTypeEnum, RankedItem
from app.services.rank_store import media_type_value


class SqlAlchemyRankStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def list_all(self) -> list[RankedItem]:
        return (
            self.db.query(RankedItem)
            .order_by(RankedItem.media_type.asc(), RankedItem.rank.asc())
            .all()
        )

    def list_partition(self, media_type: MediaTypeEnum | str) -> list[RankedItem]:
        return (
            self.db.query(RankedItem)
            .filter(RankedItem.media_type == MediaTypeEnum(media_type_value(media_type)))
            .order_by(RankedItem.rank.asc())
            .all()
        )

    def get(self, item_id: UUID) -> RankedItem | None:
        return self.db.get(RankedItem, item_id)

    def find_by_catalog(
        self, catalog_id: int, media_type: MediaTypeEnum | str
    ) -> RankedItem | None:
        return (
            self.db.query(RankedItem)
            .filter(
                RankedItem.catalog_id == catalog_id,
                RankedItem.media_type == MediaTypeEnum(media_type_value(media_type)),
            )
            .first()
        )

    def add(self, item: RankedItem) -> RankedItem:
        self.db.add(item)
        return item

    def remove(self, item_id: UUID) -> RankedItem | None:
        item = self.get(item_id)
        if item is None:
            return None
        self.db.delete(item)
        return item

    def set_rank(self, item_id: UUID, rank: int) -> bool:
        item = self.get(item_id)
        if item is None:
            return False
        item.rank = rank
        return True

    def save(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
