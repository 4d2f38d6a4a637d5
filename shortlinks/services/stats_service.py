"""
Statistics Service

Serves analytics views to the API, wrapping the aggregation engine in a
cache-aside layer:

- per-link analytics under analytics:link:<code>
- topic summaries under analytics:topic:<topic>
- the overall summary under analytics:overall

Design Decisions:
- The aggregation engine stays cache-free; caching is this service's concern
- Cache failures and corrupt payloads fall back to computing from the store
- NotFound results are not cached, so a first visit shows up immediately
"""

import logging
from typing import Awaitable, Callable, Type, TypeVar

from pydantic import BaseModel, ValidationError

from shortlinks.core.exceptions import StoreUnavailableError
from shortlinks.services.aggregation import AggregationEngine
from shortlinks.services.resolver import build_short_url
from shortlinks.services.schemas import LinkAnalytics, OverallSummary, TopicSummary
from shortlinks.stores.cache import OVERALL_CACHE_KEY, analytics_cache_key, topic_cache_key
from shortlinks.stores.interface import Cache

logger = logging.getLogger(__name__)

ViewT = TypeVar("ViewT", bound=BaseModel)


class StatsService:
    """Cached read access to analytics summaries."""

    def __init__(
        self,
        engine: AggregationEngine,
        cache: Cache,
        base_url: str,
        ttl_seconds: int = 60,
    ):
        self.engine = engine
        self.cache = cache
        self.base_url = base_url
        self.ttl_seconds = ttl_seconds

    async def get_link_analytics(self, code: str) -> LinkAnalytics:
        short_url = build_short_url(self.base_url, code)
        return await self._cached(
            analytics_cache_key(code),
            LinkAnalytics,
            lambda: self.engine.link_analytics(short_url),
        )

    async def get_topic_summary(self, topic: str) -> TopicSummary:
        return await self._cached(
            topic_cache_key(topic),
            TopicSummary,
            lambda: self.engine.topic_summary(topic),
        )

    async def get_overall_summary(self) -> OverallSummary:
        return await self._cached(
            OVERALL_CACHE_KEY,
            OverallSummary,
            self.engine.overall_summary,
        )

    async def _cached(
        self,
        key: str,
        model: Type[ViewT],
        compute: Callable[[], Awaitable[ViewT]],
    ) -> ViewT:
        try:
            payload = await self.cache.get(key)
        except StoreUnavailableError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            payload = None

        if payload is not None:
            try:
                return model.model_validate_json(payload)
            except ValidationError:
                logger.warning(f"Discarding corrupt cache entry for {key}")

        view = await compute()

        try:
            await self.cache.set(key, view.model_dump_json(), self.ttl_seconds)
        except StoreUnavailableError as e:
            logger.warning(f"Cache write failed for {key}: {e}")

        return view
