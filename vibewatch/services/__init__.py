"""Services for the recommendation pipeline."""

from .cache_service import TTLCache, RedisCache, get_short_cache, get_long_cache
from .tmdb_client import TMDBClient
from .llm_client import LLMClient
from .intent_service import IntentService, normalize_intent, default_intent
from .candidate_gatherer import CandidateGatherer
from .exclusions import ExclusionService
from .enrichment import EnrichmentService
from .pick_service import PickService, mood_to_hints
from .assembler import ResultAssembler, AssemblyContext
from .fallback import FallbackService
from .recommender import Recommender, run_recommendation

__all__ = [
    "TTLCache",
    "RedisCache",
    "get_short_cache",
    "get_long_cache",
    "TMDBClient",
    "LLMClient",
    "IntentService",
    "normalize_intent",
    "default_intent",
    "CandidateGatherer",
    "ExclusionService",
    "EnrichmentService",
    "PickService",
    "mood_to_hints",
    "ResultAssembler",
    "AssemblyContext",
    "FallbackService",
    "Recommender",
    "run_recommendation",
]
