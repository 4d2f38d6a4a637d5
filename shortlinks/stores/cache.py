"""
Cache Layer Implementations

- RedisCache: shared cache for multi-instance deployments (redis.asyncio)
- InMemoryCache: per-process expiring dict, used when REDIS_URL is unset
  and as the test double

Backend errors surface as StoreUnavailableError; callers decide whether to
absorb them. The resolver and cached views always do.
"""

import logging
import time
from typing import Callable, Dict, Optional, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from shortlinks.core.exceptions import StoreUnavailableError
from shortlinks.stores.interface import Cache

logger = logging.getLogger(__name__)


def link_cache_key(code: str) -> str:
    return f"link:{code}"


def analytics_cache_key(code: str) -> str:
    return f"analytics:link:{code}"


def topic_cache_key(topic: str) -> str:
    return f"analytics:topic:{topic}"


OVERALL_CACHE_KEY = "analytics:overall"


class RedisCache(Cache):
    """Redis-backed cache for link records and analytics views."""

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self.client: Optional[redis.Redis] = None

    async def connect(self) -> None:
        if self.client is not None:
            return
        self.client = redis.from_url(
            self.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        try:
            await self.client.ping()
            logger.info("Connected to Redis")
        except RedisError as e:
            # Serving continues; every cache call degrades to a miss
            logger.error(f"Failed to connect to Redis: {e}")

    async def get(self, key: str) -> Optional[str]:
        if self.client is None:
            raise StoreUnavailableError("cache")
        try:
            return await self.client.get(key)
        except RedisError as e:
            raise StoreUnavailableError("cache", original_error=e) from e

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if self.client is None:
            raise StoreUnavailableError("cache")
        try:
            await self.client.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            raise StoreUnavailableError("cache", original_error=e) from e

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None
            logger.info("Redis connection closed")


class InMemoryCache(Cache):
    """
    Expiring in-process cache.

    Args:
        clock: Monotonic seconds source; injectable so expiry can be tested
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._entries[key] = (value, self.clock() + ttl_seconds)

    async def close(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
