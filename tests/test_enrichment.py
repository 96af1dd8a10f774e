"""
Tests for Regional Enrichment
"""

import httpx
import pytest

from conftest import make_candidate
from vibewatch.core.exceptions import MediaSourceError
from vibewatch.services.tmdb_client import TMDBClient
from vibewatch.services.enrichment import (
    EnrichmentService,
    cert_allowed,
    gb_max_cert_from_age,
    tv_allowed_for_kids,
)


class TestCertificationLadder:

    @pytest.mark.parametrize("age,expected", [
        (5, "U"),
        (7, "U"),
        (10, "PG"),
        (11, "PG"),
        (12, "12A"),
        (13, "12A"),
        (14, "12"),
        (16, "15"),
        (17, "18"),
        ("9", "PG"),
    ])
    def test_age_to_cert(self, age, expected):
        assert gb_max_cert_from_age(age) == expected

    @pytest.mark.parametrize("age", [None, 0, "", "abc", True])
    def test_unusable_age(self, age):
        assert gb_max_cert_from_age(age) is None

    def test_cert_comparison(self):
        assert cert_allowed("PG", "PG") is True
        assert cert_allowed("U", "12A") is True
        assert cert_allowed("15", "PG") is False

    def test_unknown_cert_allowed(self):
        assert cert_allowed(None, "PG") is True
        assert cert_allowed("NR", "PG") is True
        assert cert_allowed("18", None) is True

    @pytest.mark.parametrize("rating,allowed", [
        ("TV-Y7", True),
        ("TV-PG", True),
        ("TV-MA", False),
        ("18", False),
        ("tv-ma", False),
        (None, True),
        ("", True),
    ])
    def test_tv_ratings(self, rating, allowed):
        assert tv_allowed_for_kids(rating) is allowed


class TestEnrichmentService:

    @pytest.mark.asyncio
    async def test_movie_certification_for_region(self, mock_tmdb, long_cache):
        mock_tmdb.movie_release_dates.return_value = {"results": [
            {"iso_3166_1": "US", "release_dates": [{"certification": "R"}]},
            {"iso_3166_1": "GB", "release_dates": [{"certification": ""}, {"certification": " 15 "}]},
        ]}
        service = EnrichmentService(mock_tmdb, long_cache)

        assert await service.get_movie_certification(1, "GB") == "15"
        assert await service.get_movie_certification(1, "FR") is None

    @pytest.mark.asyncio
    async def test_tv_rating_for_region(self, mock_tmdb, long_cache):
        mock_tmdb.tv_content_ratings.return_value = {"results": [
            {"iso_3166_1": "GB", "rating": "12"},
        ]}
        service = EnrichmentService(mock_tmdb, long_cache)
        assert await service.get_tv_content_rating(9, "GB") == "12"

    @pytest.mark.asyncio
    async def test_providers_flatrate_only_and_cached(self, mock_tmdb, long_cache):
        mock_tmdb.watch_providers.return_value = {"results": {"GB": {
            "flatrate": [{"provider_name": "Netflix"}, {"provider_name": "Disney Plus"}],
            "rent": [{"provider_name": "Apple TV"}],
        }}}
        service = EnrichmentService(mock_tmdb, long_cache)

        assert await service.get_watch_providers("movie", 1, "GB") == ["Netflix", "Disney Plus"]
        assert await service.get_watch_providers("movie", 1, "GB") == ["Netflix", "Disney Plus"]
        assert mock_tmdb.watch_providers.await_count == 1

    @pytest.mark.asyncio
    async def test_providers_missing_region(self, mock_tmdb, long_cache):
        mock_tmdb.watch_providers.return_value = {"results": {"US": {"flatrate": [{"provider_name": "Hulu"}]}}}
        service = EnrichmentService(mock_tmdb, long_cache)
        assert await service.get_watch_providers("tv", 2, "GB") == []

    @pytest.mark.asyncio
    async def test_provider_failure_is_empty(self, mock_tmdb, long_cache):
        mock_tmdb.watch_providers.side_effect = MediaSourceError("/movie/1/watch/providers", 404)
        service = EnrichmentService(mock_tmdb, long_cache)
        assert await service.get_watch_providers("movie", 1, "GB") == []

    @pytest.mark.asyncio
    async def test_kid_safety(self, mock_tmdb, long_cache):
        mock_tmdb.movie_release_dates.return_value = {"results": [
            {"iso_3166_1": "GB", "release_dates": [{"certification": "15"}]},
        ]}
        mock_tmdb.tv_content_ratings.return_value = {"results": [
            {"iso_3166_1": "GB", "rating": "TV-MA"},
        ]}
        service = EnrichmentService(mock_tmdb, long_cache)

        assert await service.is_kid_safe(make_candidate(1, "movie"), "PG", "GB") is False
        assert await service.is_kid_safe(make_candidate(1, "movie"), "18", "GB") is True
        assert await service.is_kid_safe(make_candidate(2, "tv"), "PG", "GB") is False

    @pytest.mark.asyncio
    async def test_kid_safety_lookup_failure_allows(self, mock_tmdb, long_cache):
        mock_tmdb.movie_release_dates.side_effect = MediaSourceError("/movie/1/release_dates", 404)
        service = EnrichmentService(mock_tmdb, long_cache)
        assert await service.is_kid_safe(make_candidate(1, "movie"), "PG", "GB") is True


class TestMalformedUpstream:
    """Bad TMDB bodies only affect the item being enriched."""

    def _service(self, handler, short_cache, long_cache):
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        tmdb = TMDBClient(http, short_cache, long_cache, api_key="k", base_url="https://tmdb.test/3")
        return EnrichmentService(tmdb, long_cache)

    @pytest.mark.asyncio
    async def test_non_json_body(self, short_cache, long_cache):
        service = self._service(
            lambda request: httpx.Response(200, text="<html>gateway page</html>"),
            short_cache, long_cache,
        )

        assert await service.get_watch_providers("movie", 1, "GB") == []
        assert await service.is_kid_safe(make_candidate(1, "movie"), "PG", "GB") is True
        assert await service.is_kid_safe(make_candidate(2, "tv"), "PG", "GB") is True

    @pytest.mark.asyncio
    async def test_unexpected_shapes(self, short_cache, long_cache):
        service = self._service(
            lambda request: httpx.Response(200, json={"results": ["GB", 3, None]}),
            short_cache, long_cache,
        )

        assert await service.get_watch_providers("tv", 1, "GB") == []
        assert await service.get_movie_certification(1, "GB") is None
        assert await service.get_tv_content_rating(1, "GB") is None

    @pytest.mark.asyncio
    async def test_non_dict_provider_entries(self, mock_tmdb, long_cache):
        mock_tmdb.watch_providers.return_value = {"results": {"GB": {
            "flatrate": ["Netflix", {"provider_name": "BBC iPlayer"}],
        }}}
        service = EnrichmentService(mock_tmdb, long_cache)
        assert await service.get_watch_providers("tv", 1, "GB") == ["BBC iPlayer"]
