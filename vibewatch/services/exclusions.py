"""
Exclusion Service

Builds the set of TMDB ids that must not be recommended: explicit
exclusions, disliked items, and titles TMDB considers similar to
disliked items.
"""

from typing import Iterable, List, Set, Union

from ..core.exceptions import MediaSourceError
from ..core.logging import get_logger
from ..models.request import HistoryItem
from .tmdb_client import TMDBClient

logger = get_logger(__name__)


MAX_DISLIKED_EXPANDED = 25
MAX_SIMILAR_PER_ITEM = 12


class ExclusionService:
    """Expands dislikes into an id exclusion set (ids compared as strings)."""

    def __init__(self, tmdb: TMDBClient):
        self.tmdb = tmdb

    async def expand_similar(self, disliked: List[HistoryItem]) -> Set[str]:
        """
        Ids of titles similar to each disliked item.

        Best-effort: a failing lookup only drops that item's expansion.
        """
        out: Set[str] = set()

        for item in disliked[:MAX_DISLIKED_EXPANDED]:
            if not item.id or item.media_type not in ("movie", "tv"):
                continue
            try:
                similar = await self.tmdb.similar(item.media_type, item.id)
            except (MediaSourceError, ValueError) as e:
                logger.debug("similar_lookup_failed", item_id=item.id, error=str(e))
                continue

            for r in similar[:MAX_SIMILAR_PER_ITEM]:
                if r.get("id") is not None:
                    out.add(str(r["id"]))

        return out

    async def build(
        self,
        disliked: List[HistoryItem],
        exclude_ids: Iterable[Union[int, str]] = (),
    ) -> Set[str]:
        """Full exclusion set: disliked ids, explicit ids and similar titles."""
        excluded = {str(d.id) for d in disliked if d.id is not None}
        excluded.update(str(i) for i in exclude_ids)

        similar = await self.expand_similar(disliked)
        excluded.update(similar)

        logger.info(
            "exclusions_built",
            disliked=len(disliked),
            similar=len(similar),
            total=len(excluded)
        )
        return excluded
