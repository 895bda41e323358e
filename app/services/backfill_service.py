"""
Genre/runtime backfill for ranked items missing metadata.

Processes items one at a time with a delay between requests so TMDB is not
hammered. Stops at the first upstream error; whatever was fetched so far is
still saved. Only genre_names and runtime_minutes are written.
"""
import asyncio
import logging

from app.core.config import settings
from app.services.rank_store import RankStore
from app.services.ranking_service import apply_metadata
from app.services.tmdb_sync import TMDBService, TMDBUpstreamError

logger = logging.getLogger(__name__)


class GenreBackfillService:
    def __init__(
        self,
        client: TMDBService,
        *,
        delay_seconds: float | None = None,
    ) -> None:
        self.client = client
        self.delay_seconds = (
            settings.BACKFILL_DELAY_SECONDS if delay_seconds is None else delay_seconds
        )
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def backfill_missing(self, store: RankStore) -> int:
        """
        Fill in genres and runtime for items that have none.

        Returns the number of items updated. A call made while another run is
        in progress returns 0 immediately.
        """
        if self._running:
            logger.info("Backfill already running; skipping")
            return 0
        self._running = True
        try:
            return await self._run(store)
        finally:
            self._running = False

    async def _run(self, store: RankStore) -> int:
        pending = [item for item in store.list_all() if not item.genre_names]
        updated = 0

        for index, item in enumerate(pending):
            if index:
                await asyncio.sleep(self.delay_seconds)
            try:
                details = await self.client.get_details(item.catalog_id, item.media_type)
            except TMDBUpstreamError as exc:
                logger.warning(
                    "Backfill stopped after %s/%s items: %s",
                    updated, len(pending), exc,
                )
                break

            if details is None:
                continue
            if apply_metadata(
                store,
                item.id,
                details["genre_names"],
                details["runtime_minutes"],
                save=False,
            ) is not None:
                updated += 1

        if updated:
            store.save()
        logger.info("Backfilled metadata for %s of %s items", updated, len(pending))
        return updated
