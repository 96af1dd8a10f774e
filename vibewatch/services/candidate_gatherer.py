"""
Candidate Gatherer

Builds the candidate pool for one recommendation request.

Two query families feed the pool:
- text search (precision for explicit titles/people in the prompt)
- constrained discovery (recall, plus hard constraints search can't express)

Pages are chosen from a deterministic per-request seed so that a new
refresh token explores different pages, while identical requests
replay the same upstream query sequence.
"""

import asyncio
from collections import Counter
from typing import Awaitable, Iterable, List, Optional, TypeVar

from pydantic import ValidationError

from ..config import Settings, get_settings
from ..core.exceptions import MediaSourceError
from ..core.logging import get_logger
from ..models.candidate import Candidate, Genre
from ..models.intent import Intent
from ..models.request import HistoryItem
from .enrichment import gb_max_cert_from_age
from .tmdb_client import TMDBClient

logger = get_logger(__name__)


MAX_WITH_GENRES = 5
MAX_WITHOUT_GENRES = 7
MAX_KEYWORDS = 3
MAX_PAGE = 20

T = TypeVar("T")


async def gather_or_cancel(aws: Iterable[Awaitable[T]]) -> List[T]:
    """
    Await all concurrently, in issue order.

    If any raises, the rest are cancelled and awaited before the error
    propagates.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except Exception:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def hash_to_int(text: str) -> int:
    """Polynomial string hash (unsigned 32-bit), reduced mod 100000."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return h % 100000


def request_seed(intent: Intent, refresh_token: str, mood) -> int:
    return hash_to_int(f"{'|'.join(intent.search_queries)}|{refresh_token}|{mood}")


def clamp(n: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, n))


def search_pages(seed: int, count: int = 3) -> List[int]:
    """Consecutive search pages starting at seed % 10 + 1."""
    start = seed % 10 + 1
    return [clamp(start + i, 1, MAX_PAGE) for i in range(count)]


def discover_pages(seed: int, count: int = 5) -> List[int]:
    """Discovery pages spread across 1..20 in steps of 7."""
    return [clamp(((seed + i * 7) % MAX_PAGE) + 1, 1, MAX_PAGE) for i in range(count)]


def hard_avoid_genres(
    disliked: List[HistoryItem],
    with_genres: List[int],
    min_count: int = 6,
    window: int = 60,
) -> List[int]:
    """
    Genres the user keeps disliking.

    A genre present in at least ``min_count`` of the last ``window``
    dislikes is avoided, unless it was explicitly requested.
    """
    counts = Counter(gid for d in disliked[:window] for gid in d.genre_ids)
    return sorted(
        gid for gid, c in counts.items()
        if c >= min_count and gid not in with_genres
    )


def normalize_media_type(raw: dict) -> Optional[Candidate]:
    """
    Give a raw TMDB item an explicit media_type.

    Falls back to the movie-only ``title`` / series-only ``name`` field
    when TMDB omits it. Returns None for people and unparseable items.
    """
    media_type = raw.get("media_type") or (
        "movie" if raw.get("title") else "tv" if raw.get("name") else None
    )
    if media_type not in ("movie", "tv"):
        return None
    try:
        return Candidate.model_validate({**raw, "media_type": media_type})
    except ValidationError:
        return None


def dedupe_candidates(candidates: List[Candidate]) -> List[Candidate]:
    """Keep the first occurrence of each (media_type, id)."""
    seen = set()
    out = []
    for c in candidates:
        if c.key in seen:
            continue
        seen.add(c.key)
        out.append(c)
    return out


def passes_hard_filters(candidate: Candidate, year_exact: Optional[int], needs_animation: bool) -> bool:
    """Exact-year and forced-animation checks. Unknown years pass."""
    if year_exact:
        year = candidate.year
        if year and year != year_exact:
            return False
    if needs_animation and not candidate.has_genre(Genre.ANIMATION):
        return False
    return True


class CandidateGatherer:
    """
    Fetches, merges, filters and scores candidates for an Intent.

    Upstream calls run concurrently; results are merged in issue order so
    the pool is deterministic for a given seed.
    """

    def __init__(self, tmdb: TMDBClient, settings: Optional[Settings] = None):
        self.tmdb = tmdb
        self.settings = settings or get_settings()

    async def resolve_person_id(self, name: Optional[str]) -> Optional[int]:
        if not name:
            return None
        try:
            results = await self.tmdb.search_person(name)
        except MediaSourceError as e:
            logger.warning("person_resolve_failed", name=name, error=e.message)
            return None
        return results[0].get("id") if results else None

    async def resolve_keyword_id(self, keyword: str) -> Optional[int]:
        if not keyword:
            return None
        try:
            results = await self.tmdb.search_keyword(keyword)
        except MediaSourceError as e:
            logger.warning("keyword_resolve_failed", keyword=keyword, error=e.message)
            return None
        return results[0].get("id") if results else None

    def score(self, candidate: Candidate) -> float:
        return candidate.score(
            self.settings.score_rating_weight,
            self.settings.score_popularity_divisor,
        )

    def rank(self, candidates: List[Candidate]) -> List[Candidate]:
        """Sort by score, best first, and truncate to the pool cap."""
        ranked = sorted(candidates, key=self.score, reverse=True)
        return ranked[:self.settings.candidate_pool_cap]

    async def gather(
        self,
        intent: Intent,
        region: str = "GB",
        refresh_token: str = "",
        mood=3,
        disliked: Optional[List[HistoryItem]] = None,
    ) -> List[Candidate]:
        """
        Build the scored candidate pool for ``intent``.

        Returns:
            Unique (media_type, id) candidates, best first, at most the pool cap
        """
        s = self.settings
        disliked = disliked or []

        seed = request_seed(intent, refresh_token, mood)
        kids = intent.kids_mode
        max_cert = gb_max_cert_from_age(intent.kids_max_age) if kids else None
        year_min = f"{intent.year_min}-01-01" if intent.year_min else None
        year_max = f"{intent.year_max}-12-31" if intent.year_max else None

        needs_animation = Genre.ANIMATION in intent.with_genres
        with_genres = list(intent.with_genres[:MAX_WITH_GENRES])
        if needs_animation and Genre.ANIMATION not in with_genres:
            with_genres.append(Genre.ANIMATION)

        avoid = hard_avoid_genres(disliked, with_genres, s.hard_avoid_min_count, s.hard_avoid_window)
        without_genres = list(dict.fromkeys(
            list(intent.without_genres[:MAX_WITHOUT_GENRES]) + avoid
        ))[:s.max_excluded_genres]

        actor_id, *keyword_ids = await asyncio.gather(
            self.resolve_person_id(intent.actor_name),
            *(self.resolve_keyword_id(kw) for kw in intent.theme_keywords[:MAX_KEYWORDS]),
        )
        keyword_ids = [k for k in keyword_ids if k]

        calls: List[Awaitable[List[dict]]] = []

        # Text search
        queries = [q for q in intent.search_queries[:s.max_search_queries] if q.strip()]
        for q in queries:
            for page in search_pages(seed, s.search_pages_per_query):
                if intent.is_movie_only:
                    calls.append(self.tmdb.search_movie(q, page, intent.year_exact))
                elif intent.is_tv_only:
                    calls.append(self.tmdb.search_tv(q, page))
                else:
                    calls.append(self.tmdb.search_multi(q, page))

        # Constrained discovery
        for page in discover_pages(seed, s.discover_pages):
            if intent.wants_movies:
                calls.append(self.tmdb.discover_movie(
                    page=page,
                    region=region,
                    kids=kids,
                    max_cert=max_cert,
                    year_min=year_min,
                    year_max=year_max,
                    niche=intent.niche_mode,
                    with_genres=with_genres,
                    without_genres=without_genres,
                    with_cast_id=actor_id,
                    with_keywords=keyword_ids,
                ))
            if intent.wants_tv:
                calls.append(self.tmdb.discover_tv(
                    page=page,
                    kids=kids,
                    year_min=year_min,
                    year_max=year_max,
                    niche=intent.niche_mode,
                    with_genres=with_genres,
                    without_genres=without_genres,
                    with_person_id=actor_id,
                    with_keywords=keyword_ids,
                ))

        batches = await gather_or_cancel(calls)
        fetched = [raw for batch in batches for raw in batch]

        pool = [c for c in (normalize_media_type(raw) for raw in fetched) if c is not None]
        pool = dedupe_candidates(pool)
        pool = [c for c in pool if passes_hard_filters(c, intent.year_exact, needs_animation)]
        pool = self.rank(pool)

        logger.info(
            "candidates_gathered",
            seed=seed,
            calls=len(calls),
            fetched=len(fetched),
            pool=len(pool),
            avoided_genres=avoid,
        )
        return pool
