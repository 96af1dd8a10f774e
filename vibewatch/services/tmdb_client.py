"""
TMDB API Client

Thin async wrapper over the TMDB v3 endpoints used by the
recommendation pipeline.

Failure policy:
- HTTP 5xx: soft fail, the call returns an empty result set
- any other non-success status, transport error or undecodable body:
  MediaSourceError
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import httpx

from ..config import get_settings
from ..core.exceptions import MediaSourceError
from ..core.logging import get_logger

logger = get_logger(__name__)

# Kid-safe discovery genre lists (TMDB ids)
KIDS_WITH_GENRES = "16,10751"                 # Animation, Family
KIDS_WITHOUT_GENRES = "27,53,80,9648,10752"   # Horror, Thriller, Crime, Mystery, War

Params = Union[Dict[str, Any], Sequence[Tuple[str, Any]]]


def _tag(items: List[dict], media_type: str) -> List[dict]:
    return [{**item, "media_type": media_type} for item in items]


def _csv(values: Sequence[Any]) -> str:
    return ",".join(str(v) for v in values)


class TMDBClient:
    """
    TMDB v3 client.

    Listing fallbacks (trending/popular) go through the short cache;
    certification, rating, person, keyword and similar lookups go
    through the long cache. Search and discover calls are not cached.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        short_cache,
        long_cache,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        settings = get_settings()
        self.http = http
        self.short_cache = short_cache
        self.long_cache = long_cache
        self.api_key = api_key or settings.tmdb_api_key
        self.base_url = (base_url or settings.tmdb_base_url).rstrip("/")

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    async def get_json(
        self,
        path: str,
        params: Optional[Params] = None,
        cache=None,
        cache_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        GET a TMDB endpoint and decode JSON.

        Successful responses are stored in ``cache`` under ``cache_key``
        when both are given. Soft-failed responses are never cached.
        """
        if cache is not None and cache_key:
            hit = await cache.get(cache_key)
            if hit is not None:
                return hit

        query: List[Tuple[str, Any]] = [("api_key", self.api_key)]
        if params:
            query.extend(params.items() if isinstance(params, dict) else params)

        url = f"{self.base_url}{path}"
        try:
            response = await self.http.get(url, params=query)
        except httpx.HTTPError as e:
            raise MediaSourceError(url, detail=str(e)) from e

        if response.status_code >= 500:
            logger.warning("tmdb_soft_fail", status=response.status_code, path=path)
            return {"results": []}

        if not response.is_success:
            raise MediaSourceError(url, response.status_code, response.text[:200])

        try:
            data = response.json()
        except ValueError as e:
            raise MediaSourceError(url, response.status_code, "undecodable body") from e

        if cache is not None and cache_key:
            await cache.set(cache_key, data)
        return data

    # =========================================================================
    # SEARCH
    # =========================================================================

    async def search_multi(self, query: str, page: int) -> List[dict]:
        """Free-text search across movies, series and people (untagged)."""
        data = await self.get_json("/search/multi", {
            "query": query, "include_adult": "false", "page": page,
        })
        return data.get("results") or []

    async def search_movie(self, query: str, page: int, year: Optional[int] = None) -> List[dict]:
        params = {"query": query, "include_adult": "false", "page": page}
        if year:
            params["year"] = year
        data = await self.get_json("/search/movie", params)
        return _tag(data.get("results") or [], "movie")

    async def search_tv(self, query: str, page: int) -> List[dict]:
        data = await self.get_json("/search/tv", {
            "query": query, "include_adult": "false", "page": page,
        })
        return _tag(data.get("results") or [], "tv")

    # =========================================================================
    # DISCOVER
    # =========================================================================

    async def discover_movie(
        self,
        page: int,
        region: str = "GB",
        kids: bool = False,
        max_cert: Optional[str] = None,
        year_min: Optional[str] = None,
        year_max: Optional[str] = None,
        niche: bool = False,
        with_genres: Sequence[int] = (),
        without_genres: Sequence[int] = (),
        with_cast_id: Optional[int] = None,
        with_keywords: Sequence[int] = (),
    ) -> List[dict]:
        """Constrained movie listing. Dates are YYYY-MM-DD strings."""
        params: List[Tuple[str, Any]] = [
            ("include_adult", "false"),
            ("page", page),
            ("sort_by", "popularity.asc" if niche else "popularity.desc"),
            ("vote_count.gte", 15 if niche else 60),
        ]
        if year_min or year_max:
            params.append(("primary_release_date.gte", year_min or "1900-01-01"))
            params.append(("primary_release_date.lte", year_max or "2100-12-31"))
        if kids and max_cert:
            params.append(("certification_country", region))
            params.append(("certification.lte", max_cert))
        params.extend(self._genre_params(kids, with_genres, without_genres))
        if with_cast_id:
            params.append(("with_cast", str(with_cast_id)))
        if with_keywords:
            params.append(("with_keywords", _csv(with_keywords)))

        data = await self.get_json("/discover/movie", params)
        return _tag(data.get("results") or [], "movie")

    async def discover_tv(
        self,
        page: int,
        kids: bool = False,
        year_min: Optional[str] = None,
        year_max: Optional[str] = None,
        niche: bool = False,
        with_genres: Sequence[int] = (),
        without_genres: Sequence[int] = (),
        with_person_id: Optional[int] = None,
        with_keywords: Sequence[int] = (),
    ) -> List[dict]:
        """Constrained series listing. TMDB has no TV certification filter."""
        params: List[Tuple[str, Any]] = [
            ("include_adult", "false"),
            ("page", page),
            ("sort_by", "popularity.asc" if niche else "popularity.desc"),
            ("vote_count.gte", 10 if niche else 40),
        ]
        if year_min or year_max:
            params.append(("first_air_date.gte", year_min or "1900-01-01"))
            params.append(("first_air_date.lte", year_max or "2100-12-31"))
        params.extend(self._genre_params(kids, with_genres, without_genres))
        if with_person_id:
            params.append(("with_people", str(with_person_id)))
        if with_keywords:
            params.append(("with_keywords", _csv(with_keywords)))

        data = await self.get_json("/discover/tv", params)
        return _tag(data.get("results") or [], "tv")

    @staticmethod
    def _genre_params(
        kids: bool,
        with_genres: Sequence[int],
        without_genres: Sequence[int],
    ) -> List[Tuple[str, Any]]:
        # Kid-safe lists are sent alongside the intent's own genre lists
        params: List[Tuple[str, Any]] = []
        if kids:
            params.append(("with_genres", KIDS_WITH_GENRES))
            params.append(("without_genres", KIDS_WITHOUT_GENRES))
        if with_genres:
            params.append(("with_genres", _csv(with_genres)))
        if without_genres:
            params.append(("without_genres", _csv(without_genres)))
        return params

    # =========================================================================
    # LISTINGS (fallback pools)
    # =========================================================================

    async def trending_all(self, page: int = 1) -> List[dict]:
        """Daily trending movies and series (already carry media_type)."""
        data = await self.get_json(
            "/trending/all/day", {"page": page},
            cache=self.short_cache, cache_key=f"trend:{page}",
        )
        return data.get("results") or []

    async def popular(self, media_type: str, page: int = 1) -> List[dict]:
        data = await self.get_json(
            f"/{media_type}/popular", {"page": page, "include_adult": "false"},
            cache=self.short_cache, cache_key=f"pop:{media_type}:{page}",
        )
        return _tag(data.get("results") or [], media_type)

    # =========================================================================
    # REGIONAL LOOKUPS
    # =========================================================================

    async def movie_release_dates(self, movie_id: int, region: str) -> Dict[str, Any]:
        return await self.get_json(
            f"/movie/{movie_id}/release_dates",
            cache=self.long_cache, cache_key=f"cert:movie:{region}:{movie_id}",
        )

    async def tv_content_ratings(self, tv_id: int, region: str) -> Dict[str, Any]:
        return await self.get_json(
            f"/tv/{tv_id}/content_ratings",
            cache=self.long_cache, cache_key=f"cert:tv:{region}:{tv_id}",
        )

    async def watch_providers(self, media_type: str, item_id: int) -> Dict[str, Any]:
        """Raw watch/providers payload; callers cache the derived list."""
        return await self.get_json(f"/{media_type}/{item_id}/watch/providers")

    # =========================================================================
    # RESOLUTION / EXPANSION
    # =========================================================================

    async def search_person(self, name: str) -> List[dict]:
        data = await self.get_json(
            "/search/person",
            {"query": name, "page": 1, "include_adult": "false"},
            cache=self.long_cache, cache_key=f"person:{name.lower()}",
        )
        return data.get("results") or []

    async def search_keyword(self, keyword: str) -> List[dict]:
        data = await self.get_json(
            "/search/keyword",
            {"query": keyword, "page": 1},
            cache=self.long_cache, cache_key=f"kw:{keyword.lower()}",
        )
        return data.get("results") or []

    async def similar(self, media_type: str, item_id: Union[int, str]) -> List[dict]:
        data = await self.get_json(
            f"/{media_type}/{item_id}/similar",
            {"page": 1},
            cache=self.long_cache, cache_key=f"sim:{media_type}:{item_id}",
        )
        return data.get("results") or []
