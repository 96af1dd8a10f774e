"""
Cache Service

Read-through caches for TMDB lookups.

Two instances are used per process:
- short cache (~10 minutes) for listing endpoints (trending/popular)
- long cache (~2 hours) for certifications, providers, person/keyword
  resolution and similar-title lookups

Both expose the same async get/set contract and are injected into the
services that use them. Values live in memory unless REDIS_URL is set.
"""

import json
import time
from typing import Any, Callable, Dict, Optional, Tuple

import redis.asyncio as aioredis

from ..config import get_settings
from ..core.logging import get_logger

logger = get_logger(__name__)


class TTLCache:
    """
    In-memory key -> (value, expiry) map.

    Expiry is checked lazily on read; there is no size bound and no
    background eviction. ``clock`` is injectable so tests can move time.
    """

    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: Dict[str, Tuple[Any, float]] = {}

    async def get(self, key: str) -> Optional[Any]:
        """Get value, or None if absent or expired."""
        entry = self._store.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if self._clock() > expires_at:
            del self._store[key]
            return None
        return value

    async def set(self, key: str, value: Any) -> bool:
        """Set value with this cache's TTL."""
        self._store[key] = (value, self._clock() + self.ttl_seconds)
        return True

    def __len__(self) -> int:
        return len(self._store)


class RedisCache:
    """
    Redis-backed cache with the same contract as TTLCache.

    Values are stored as JSON with SETEX; Redis handles expiry.
    Redis errors degrade to cache misses.
    """

    def __init__(self, redis_client, ttl_seconds: int, prefix: str = "vibewatch"):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        try:
            data = await self.redis.get(self._key(key))
        except Exception as e:
            logger.warning("cache_get_failed", key=key, error=str(e))
            return None

        if data is None:
            return None
        return json.loads(data)

    async def set(self, key: str, value: Any) -> bool:
        try:
            await self.redis.setex(self._key(key), self.ttl_seconds, json.dumps(value))
            return True
        except Exception as e:
            logger.warning("cache_set_failed", key=key, error=str(e))
            return False


def _build_cache(ttl_seconds: int, prefix: str):
    settings = get_settings()
    if settings.redis_url:
        client = aioredis.from_url(settings.redis_url, decode_responses=True)
        logger.info("redis_cache_configured", prefix=prefix, ttl=ttl_seconds)
        return RedisCache(client, ttl_seconds, prefix=f"vibewatch:{prefix}")
    return TTLCache(ttl_seconds)


# Singleton instances
_short_cache = None
_long_cache = None


def get_short_cache():
    """Process-wide short-TTL cache (listing endpoints)."""
    global _short_cache
    if _short_cache is None:
        _short_cache = _build_cache(get_settings().short_cache_ttl_seconds, "short")
    return _short_cache


def get_long_cache():
    """Process-wide long-TTL cache (certs, providers, lookups)."""
    global _long_cache
    if _long_cache is None:
        _long_cache = _build_cache(get_settings().long_cache_ttl_seconds, "long")
    return _long_cache
