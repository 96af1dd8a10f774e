"""
Application Configuration

Load settings from environment variables with validation.
"""

from functools import lru_cache
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Environment
    environment: str = "development"
    debug: bool = True

    # Logging ("" level = DEBUG when debug else INFO; format json|console|auto)
    log_level: str = ""
    log_format: str = "auto"

    # TMDB
    tmdb_api_key: Optional[str] = None
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    tmdb_image_base: str = "https://image.tmdb.org/t/p/w500"

    # Language model (OpenAI-compatible chat completions)
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4.1-mini"

    # Redis (empty = in-memory caches)
    redis_url: str = ""

    # HTTP
    http_timeout_seconds: float = 10.0

    # Rate Limiting
    rate_limit_per_minute: int = 30

    # Cache TTLs (seconds)
    short_cache_ttl_seconds: int = 600   # 10 minutes, listing endpoints
    long_cache_ttl_seconds: int = 7200   # 2 hours, certs/providers/lookups

    # Candidate scoring
    score_rating_weight: float = 2.2
    score_popularity_divisor: float = 140.0
    candidate_pool_cap: int = 750

    # Learned genre aversion
    hard_avoid_min_count: int = 6
    hard_avoid_window: int = 60
    max_excluded_genres: int = 10

    # Query fan-out
    max_search_queries: int = 5
    search_pages_per_query: int = 3
    discover_pages: int = 5

    # Result assembly
    max_results: int = 6
    max_pick_attempts: int = 25
    relax_below: int = 3
    ranking_candidate_count: int = 220
    fallback_pick_count: int = 12

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
