"""
Pytest Fixtures

Shared mocks and fixtures for testing.
"""

import pytest
from unittest.mock import AsyncMock
from typing import Any, Dict

from vibewatch.config import Settings
from vibewatch.models.candidate import Candidate
from vibewatch.models.intent import Intent
from vibewatch.services.cache_service import TTLCache
from vibewatch.services.llm_client import LLMClient
from vibewatch.services.tmdb_client import TMDBClient


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def raw_item(item_id: int, media_type: str = "movie", **overrides) -> Dict[str, Any]:
    """Raw TMDB-shaped listing item."""
    item = {
        "id": item_id,
        "overview": f"Overview {item_id}",
        "genre_ids": [18],
        "vote_average": 7.0,
        "vote_count": 100,
        "popularity": 50.0,
        "poster_path": f"/poster{item_id}.jpg",
        "media_type": media_type,
    }
    if media_type == "movie":
        item["title"] = f"Movie {item_id}"
        item["release_date"] = "2010-05-01"
    else:
        item["name"] = f"Show {item_id}"
        item["first_air_date"] = "2012-09-01"
    item.update(overrides)
    return item


def make_candidate(item_id: int, media_type: str = "movie", **overrides) -> Candidate:
    return Candidate.model_validate(raw_item(item_id, media_type, **overrides))


def make_intent(**overrides) -> Intent:
    fields = {
        "searchHint": "cozy mystery",
        "searchQueries": ["cozy mystery"],
        "rawPrompt": "cozy mystery",
    }
    fields.update(overrides)
    return Intent(**fields)


@pytest.fixture
def settings():
    """Settings with defaults, independent of the environment's keys."""
    return Settings(tmdb_api_key="test-key", openai_api_key=None, redis_url="")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def long_cache(clock):
    return TTLCache(7200, clock=clock)


@pytest.fixture
def short_cache(clock):
    return TTLCache(600, clock=clock)


@pytest.fixture
def mock_tmdb():
    """TMDB client whose every endpoint returns nothing by default."""
    tmdb = AsyncMock(spec=TMDBClient)
    for name in (
        "search_multi", "search_movie", "search_tv",
        "discover_movie", "discover_tv",
        "trending_all", "popular",
        "search_person", "search_keyword", "similar",
    ):
        getattr(tmdb, name).return_value = []
    tmdb.movie_release_dates.return_value = {"results": []}
    tmdb.tv_content_ratings.return_value = {"results": []}
    tmdb.watch_providers.return_value = {"results": {}}
    return tmdb


@pytest.fixture
def mock_llm():
    """Language model that is always unavailable."""
    llm = AsyncMock(spec=LLMClient)
    llm.complete_json.return_value = None
    return llm
