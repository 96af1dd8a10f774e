"""
Regional Enrichment

Certification / content-rating lookups, kid-safety predicates and
watch-provider availability for a target region.

Lookups are cached for the long TTL. A failed lookup for one item is
treated as "no constraint" for that item and never aborts the batch.
"""

from typing import List, Optional

from ..core.exceptions import MediaSourceError
from ..core.logging import get_logger
from ..models.candidate import Candidate
from .tmdb_client import TMDBClient

logger = get_logger(__name__)


# UK (BBFC) classification ladder, least to most restrictive
GB_CERT_ORDER = ["U", "PG", "12A", "12", "15", "18"]

# Substrings that mark a TV rating as unsuitable for kids
TV_MATURE_RATINGS = ["TV-MA", "NC-17", "R", "18", "MA15+", "M"]


def gb_max_cert_from_age(max_age) -> Optional[str]:
    """Highest UK certificate suitable for a child of ``max_age``."""
    if max_age is None or isinstance(max_age, bool):
        return None
    try:
        age = float(max_age)
    except (TypeError, ValueError):
        return None
    if not age:
        return None

    if age <= 7:
        return "U"
    if age <= 11:
        return "PG"
    if age <= 13:
        return "12A"
    if age <= 14:
        return "12"
    if age <= 16:
        return "15"
    return "18"


def cert_allowed(cert: Optional[str], max_cert: Optional[str]) -> bool:
    """Compare certificates on the ladder. Unknown values are allowed."""
    if not max_cert or not cert:
        return True
    if cert not in GB_CERT_ORDER or max_cert not in GB_CERT_ORDER:
        return True
    return GB_CERT_ORDER.index(cert) <= GB_CERT_ORDER.index(max_cert)


def tv_allowed_for_kids(rating: Optional[str]) -> bool:
    """Reject mature TV ratings. A missing rating is allowed."""
    if not rating:
        return True
    r = str(rating).upper()
    return not any(bad in r for bad in TV_MATURE_RATINGS)


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


def _region_entry(data, region: str) -> Optional[dict]:
    """The ``results`` entry whose iso_3166_1 is ``region``."""
    results = data.get("results") if isinstance(data, dict) else None
    return next(
        (x for x in _as_list(results) if isinstance(x, dict) and x.get("iso_3166_1") == region),
        None
    )


class EnrichmentService:
    """Region-scoped certification and provider lookups."""

    def __init__(self, tmdb: TMDBClient, long_cache):
        self.tmdb = tmdb
        self.cache = long_cache

    async def get_movie_certification(self, movie_id: int, region: str = "GB") -> Optional[str]:
        """First non-empty certification for ``region``, or None."""
        data = await self.tmdb.movie_release_dates(movie_id, region)
        entry = _region_entry(data, region)
        if not entry:
            return None

        certs = [
            str(r.get("certification") or "").strip()
            for r in _as_list(entry.get("release_dates"))
            if isinstance(r, dict)
        ]
        return next((c for c in certs if c), None)

    async def get_tv_content_rating(self, tv_id: int, region: str = "GB") -> Optional[str]:
        """Content rating string for ``region``, or None."""
        data = await self.tmdb.tv_content_ratings(tv_id, region)
        entry = _region_entry(data, region)
        if entry and entry.get("rating"):
            return str(entry["rating"]).strip()
        return None

    async def get_watch_providers(self, media_type: str, item_id: int, region: str = "GB") -> List[str]:
        """
        Subscription (flatrate) provider names for ``region``.

        Never raises: any failure yields an empty list.
        """
        key = f"prov:{media_type}:{region}:{item_id}"
        hit = await self.cache.get(key)
        if hit is not None:
            return hit

        try:
            data = await self.tmdb.watch_providers(media_type, item_id)
        except (MediaSourceError, ValueError) as e:
            logger.debug("providers_lookup_failed", item_id=item_id, error=str(e))
            return []

        results = data.get("results") if isinstance(data, dict) else None
        region_data = results.get(region) if isinstance(results, dict) else None
        if not isinstance(region_data, dict):
            region_data = {}

        providers = [
            p["provider_name"]
            for p in _as_list(region_data.get("flatrate"))
            if isinstance(p, dict) and p.get("provider_name")
        ]
        await self.cache.set(key, providers)
        return providers

    async def is_kid_safe(self, candidate: Candidate, max_cert: Optional[str], region: str = "GB") -> bool:
        """
        Kid-safety check for one candidate.

        Movies are compared on the certificate ladder; series are checked
        against the mature-rating denylist. A failed lookup allows the item.
        """
        try:
            if candidate.media_type == "movie":
                cert = await self.get_movie_certification(candidate.id, region)
                return cert_allowed(cert, max_cert)

            rating = await self.get_tv_content_rating(candidate.id, region)
            return tv_allowed_for_kids(rating)

        except (MediaSourceError, ValueError) as e:
            logger.debug("certification_lookup_failed", item_id=candidate.id, error=str(e))
            return True
