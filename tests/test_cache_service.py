"""
Tests for Cache Service
"""

import json

import pytest
from unittest.mock import AsyncMock

from vibewatch.services.cache_service import TTLCache, RedisCache


class TestTTLCache:
    """In-memory cache with lazy expiry."""

    @pytest.mark.asyncio
    async def test_set_then_get(self, clock):
        cache = TTLCache(60, clock=clock)
        await cache.set("k", {"results": [1, 2]})
        assert await cache.get("k") == {"results": [1, 2]}

    @pytest.mark.asyncio
    async def test_missing_key_is_absent(self, clock):
        cache = TTLCache(60, clock=clock)
        assert await cache.get("nope") is None

    @pytest.mark.asyncio
    async def test_value_survives_until_expiry(self, clock):
        cache = TTLCache(60, clock=clock)
        await cache.set("k", "v")
        clock.advance(60)
        assert await cache.get("k") == "v"

    @pytest.mark.asyncio
    async def test_expired_entry_removed_on_read(self, clock):
        """Expiry is only checked when the key is read."""
        cache = TTLCache(60, clock=clock)
        await cache.set("k", "v")
        clock.advance(61)

        assert len(cache) == 1
        assert await cache.get("k") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_set_refreshes_expiry(self, clock):
        cache = TTLCache(60, clock=clock)
        await cache.set("k", "old")
        clock.advance(50)
        await cache.set("k", "new")
        clock.advance(50)
        assert await cache.get("k") == "new"

    @pytest.mark.asyncio
    async def test_empty_list_is_a_hit(self, clock):
        """Empty provider lists are valid cached values."""
        cache = TTLCache(60, clock=clock)
        await cache.set("prov:movie:GB:1", [])
        assert await cache.get("prov:movie:GB:1") == []


class TestRedisCache:
    """Redis-backed variant with the same contract."""

    @pytest.mark.asyncio
    async def test_get_decodes_json(self):
        mock_redis = AsyncMock()
        mock_redis.get.return_value = '{"results": []}'
        cache = RedisCache(mock_redis, 600, prefix="vw:short")

        assert await cache.get("trend:1") == {"results": []}
        mock_redis.get.assert_awaited_with("vw:short:trend:1")

    @pytest.mark.asyncio
    async def test_set_uses_setex_with_ttl(self):
        mock_redis = AsyncMock()
        cache = RedisCache(mock_redis, 600, prefix="vw:short")

        await cache.set("trend:1", ["a"])
        mock_redis.setex.assert_awaited_with("vw:short:trend:1", 600, json.dumps(["a"]))

    @pytest.mark.asyncio
    async def test_redis_error_is_a_miss(self):
        mock_redis = AsyncMock()
        mock_redis.get.side_effect = ConnectionError("down")
        cache = RedisCache(mock_redis, 600)

        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_redis_set_error_reports_false(self):
        mock_redis = AsyncMock()
        mock_redis.setex.side_effect = ConnectionError("down")
        cache = RedisCache(mock_redis, 600)

        assert await cache.set("k", 1) is False
