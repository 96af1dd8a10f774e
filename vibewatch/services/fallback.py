"""
Fallback Service

Keeps the response non-empty when gathering comes back with nothing.

- Empty pool: substitute trending-then-popular listings
- Nothing obtainable at all: a single synthetic placeholder result
"""

from typing import List, Set

from ..core.logging import get_logger
from ..models.candidate import Candidate
from ..models.intent import MediaType
from ..models.response import ResultItem
from .candidate_gatherer import dedupe_candidates, normalize_media_type
from .tmdb_client import TMDBClient

logger = get_logger(__name__)


PLACEHOLDER_RESULT = ResultItem(
    id="fallback-1",
    title="Try a different vibe",
    overview="The server could not reach TMDB right now. Try again in a moment.",
    media_type="movie",
    vote_average=None,
    release_date="",
    poster_path=None,
    providers=[],
    reason="Temporary fallback.",
)


class FallbackService:
    """Substitute candidate pools for cold or failed gathering."""

    def __init__(self, tmdb: TMDBClient):
        self.tmdb = tmdb

    async def trending(self, media_type: str = MediaType.ANY.value, page: int = 1) -> List[dict]:
        items = [
            x for x in await self.tmdb.trending_all(page)
            if not x.get("adult") and x.get("media_type") in ("movie", "tv")
        ]
        if media_type in ("movie", "tv"):
            items = [x for x in items if x["media_type"] == media_type]
        return items

    async def popular(self, media_type: str = MediaType.ANY.value, page: int = 1) -> List[dict]:
        out: List[dict] = []
        if media_type != "tv":
            out.extend(await self.tmdb.popular("movie", page))
        if media_type != "movie":
            out.extend(await self.tmdb.popular("tv", page))
        return [x for x in out if not x.get("adult")]

    async def pool_fallback(self, media_type: str, excluded: Set[str] = frozenset()) -> List[Candidate]:
        """
        Trending then popular, unique by (media_type, id).

        Excluded ids are still honoured here.
        """
        raw = await self.trending(media_type) + await self.popular(media_type)
        pool = dedupe_candidates(
            [c for c in (normalize_media_type(r) for r in raw) if c is not None]
        )
        pool = [c for c in pool if str(c.id) not in excluded]

        logger.info("pool_fallback_used", media_type=media_type, size=len(pool))
        return pool

    @staticmethod
    def placeholder() -> List[ResultItem]:
        """Synthetic single-item response for total upstream failure."""
        return [PLACEHOLDER_RESULT.model_copy()]
