"""
TMDB Sync Service
─────────────────
Wraps the TMDB v3 REST API for metadata backfill.

Ranked items are created with empty genres and zero runtime. This client
fetches those two fields afterwards; it is never on the ranking path.
"""
import httpx

from app.core.config import settings
from app.db.models import MediaTypeEnum

TMDB_BASE_URL = "https://api.themoviedb.org/3"
TMDB_TIMEOUT_SECONDS = 10.0


class TMDBConfigError(Exception):
    """Raised when TMDB client is used without an API key."""


class TMDBUpstreamError(Exception):
    """Raised for non-recoverable TMDB request/response errors."""


class TMDBService:
    """
    Thin async wrapper around TMDB v3 API.
    Uses httpx for HTTP — non-blocking in async FastAPI context.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.TMDB_API_KEY
        if not self.api_key:
            raise TMDBConfigError(
                "TMDB_API_KEY is not set. "
                "Add it to your .env file or pass it explicitly."
            )
        self._transport = transport

    async def get_movie_details(self, tmdb_id: int) -> dict | None:
        """
        Fetch genres and runtime for a movie.

        Returns {"genre_names": [...], "runtime_minutes": int} or None if the
        movie is not found.
        """
        raw = await self._get_details(f"/movie/{tmdb_id}")
        if raw is None:
            return None
        return self._map_details(raw, runtime=raw.get("runtime"))

    async def get_tv_details(self, tmdb_id: int) -> dict | None:
        """Fetch genres and episode runtime for a show. None if not found."""
        raw = await self._get_details(f"/tv/{tmdb_id}")
        if raw is None:
            return None
        run_times = raw.get("episode_run_time") or []
        return self._map_details(raw, runtime=run_times[0] if run_times else None)

    async def get_details(self, tmdb_id: int, media_type: MediaTypeEnum | str) -> dict | None:
        value = media_type.value if hasattr(media_type, "value") else str(media_type)
        if value == MediaTypeEnum.MOVIE.value:
            return await self.get_movie_details(tmdb_id)
        return await self.get_tv_details(tmdb_id)

    async def _get_details(self, path: str) -> dict | None:
        params = {"api_key": self.api_key, "language": "en-US"}

        try:
            async with httpx.AsyncClient(
                timeout=TMDB_TIMEOUT_SECONDS,
                transport=self._transport,
            ) as client:
                response = await client.get(f"{TMDB_BASE_URL}{path}", params=params)
                if response.status_code == 404:
                    return None
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TMDBUpstreamError(
                f"TMDB details failed with status {exc.response.status_code}"
            ) from exc
        except httpx.RequestError as exc:
            raise TMDBUpstreamError("TMDB details request failed") from exc

        return response.json()

    def _map_details(self, raw: dict, runtime: int | None) -> dict:
        """Normalize a TMDB details payload to the backfilled fields."""
        genres = [g.get("name") for g in raw.get("genres", []) if g.get("name")]
        return {
            "genre_names": genres,
            "runtime_minutes": int(runtime) if runtime else 0,
        }
