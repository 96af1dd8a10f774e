"""
Recommendation Pipeline

prompt -> intent -> exclusions -> candidates -> picks -> results

Orchestrates one request end to end. Only genuinely fatal conditions
(hard TMDB errors) escape; every other failure degrades toward a
plausible, non-empty response.
"""

import time
from typing import Iterable, List, Optional

import httpx

from ..config import Settings, get_settings
from ..core.exceptions import ConfigurationError
from ..core.logging import get_logger
from ..models.request import RecommendRequest
from ..models.response import RecommendResponse
from .assembler import AssemblyContext, ResultAssembler
from .cache_service import get_long_cache, get_short_cache
from .candidate_gatherer import CandidateGatherer
from .enrichment import EnrichmentService
from .exclusions import ExclusionService
from .fallback import FallbackService
from .intent_service import IntentService
from .llm_client import LLMClient
from .pick_service import PickService
from .tmdb_client import TMDBClient

logger = get_logger(__name__)


def merge_names(*groups: Iterable[str]) -> List[str]:
    """Order-preserving union of provider name lists."""
    return list(dict.fromkeys(str(n) for group in groups for n in (group or [])))


class Recommender:
    """Wires the pipeline services around one TMDB client and one LLM client."""

    def __init__(
        self,
        tmdb: TMDBClient,
        llm: LLMClient,
        long_cache,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.tmdb = tmdb
        self.intents = IntentService(llm)
        self.exclusions = ExclusionService(tmdb)
        self.gatherer = CandidateGatherer(tmdb, self.settings)
        self.picker = PickService(llm, self.settings)
        self.fallback = FallbackService(tmdb)
        self.assembler = ResultAssembler(EnrichmentService(tmdb, long_cache), self.settings)

    async def recommend(self, req: RecommendRequest) -> RecommendResponse:
        start_time = time.time()
        prompt = req.prompt.strip()

        # 1) Intent
        intent = await self.intents.extract(prompt, req.mood, req.local_hour)

        include = merge_names(req.provider_include, intent.provider_include)
        exclude = merge_names(req.provider_exclude, intent.provider_exclude)

        # 2) Exclusions
        excluded = await self.exclusions.build(req.disliked, req.exclude_ids)

        # 3) Candidates
        pool = await self.gatherer.gather(
            intent,
            region=req.region,
            refresh_token=req.refresh_token,
            mood=req.mood,
            disliked=req.disliked,
        )
        pool = [c for c in pool if str(c.id) not in excluded]

        if not pool:
            pool = await self.fallback.pool_fallback(intent.media_type, excluded)

        if not pool:
            logger.warning("total_fallback", prompt=prompt)
            return RecommendResponse(
                results=self.fallback.placeholder(),
                intent=intent,
                providerInclude=include,
                providerExclude=exclude,
            )

        # 4) Picks
        picks = await self.picker.select(
            prompt,
            intent,
            pool,
            mood=req.mood,
            local_hour=req.local_hour,
            region=req.region,
            liked=req.liked,
            disliked=req.disliked,
            watched=req.watched,
        )

        # 5) Results
        results = await self.assembler.assemble(AssemblyContext(
            picks=picks,
            pool=pool,
            intent=intent,
            region=req.region,
            provider_include=include,
            provider_exclude=exclude,
        ))

        logger.info(
            "recommend_complete",
            pool=len(pool),
            picks=len(picks),
            results=len(results),
            latency_ms=int((time.time() - start_time) * 1000),
        )

        return RecommendResponse(
            results=results,
            intent=intent,
            providerInclude=include,
            providerExclude=exclude,
        )


async def run_recommendation(req: RecommendRequest, settings: Optional[Settings] = None) -> RecommendResponse:
    """
    Build per-request HTTP clients around the shared caches and run the pipeline.
    """
    settings = settings or get_settings()
    if not settings.tmdb_api_key:
        raise ConfigurationError("TMDB_API_KEY")

    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as http:
        tmdb = TMDBClient(
            http,
            get_short_cache(),
            get_long_cache(),
            api_key=settings.tmdb_api_key,
            base_url=settings.tmdb_base_url,
        )
        llm = LLMClient(
            http,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
        )
        recommender = Recommender(tmdb, llm, get_long_cache(), settings)
        return await recommender.recommend(req)
