"""
Service Container

Owns the process-wide resources (database engine, cache client, GeoIP
reader, recording queue) and the services built on them.

Design:
- One container per application instance, stored on app.state
- initialize() before serving, shutdown() to drain and release
- Collaborators can be passed in, so tests swap in in-memory fakes
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from shortlinks.core.setting import Settings
from shortlinks.db.session import create_engine_for_url, create_session_maker, create_tables
from shortlinks.services.aggregation import AggregationEngine
from shortlinks.services.background_tasks import RecordingQueue
from shortlinks.services.enrichment import GeoIPLookup, VisitEnricher
from shortlinks.services.link_service import LinkService
from shortlinks.services.recorder import AnalyticsRecorder
from shortlinks.services.resolver import Resolver
from shortlinks.services.stats_service import StatsService
from shortlinks.stores.analytics_store import SQLAnalyticsStore
from shortlinks.stores.cache import InMemoryCache, RedisCache
from shortlinks.stores.interface import Cache
from shortlinks.stores.link_store import SQLLinkStore

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Wires stores, cache and services together for one app instance."""

    def __init__(
        self,
        settings: Settings,
        cache: Optional[Cache] = None,
        engine: Optional[AsyncEngine] = None,
        enricher: Optional[VisitEnricher] = None,
    ):
        self.settings = settings
        self.cache = cache
        self.engine = engine
        self.enricher = enricher
        self._geo_lookup: Optional[GeoIPLookup] = None
        self._initialized = False

        self.resolver: Optional[Resolver] = None
        self.link_service: Optional[LinkService] = None
        self.recorder: Optional[AnalyticsRecorder] = None
        self.recording_queue: Optional[RecordingQueue] = None
        self.aggregation: Optional[AggregationEngine] = None
        self.stats_service: Optional[StatsService] = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Connect the store and cache and build the services."""
        if self._initialized:
            logger.warning("Service container already initialized")
            return

        settings = self.settings

        if self.engine is None:
            self.engine = create_engine_for_url(settings.DATABASE_URL)
        if settings.CREATE_TABLES_ON_STARTUP:
            await create_tables(self.engine)
        session_maker = create_session_maker(self.engine)

        if self.cache is None:
            if settings.REDIS_URL:
                self.cache = RedisCache(settings.REDIS_URL)
            else:
                logger.info("REDIS_URL not set, using in-process cache")
                self.cache = InMemoryCache()
        await self.cache.connect()

        if self.enricher is None:
            if settings.GEOIP_DATABASE_PATH:
                self._geo_lookup = GeoIPLookup(settings.GEOIP_DATABASE_PATH)
                self.enricher = VisitEnricher(geo_lookup=self._geo_lookup)
            else:
                self.enricher = VisitEnricher()

        link_store = SQLLinkStore(session_maker)
        analytics_store = SQLAnalyticsStore(session_maker)

        self.recorder = AnalyticsRecorder(analytics_store)
        self.recording_queue = RecordingQueue(
            self.recorder,
            max_concurrency=settings.RECORDER_MAX_CONCURRENCY,
            max_pending=settings.RECORDER_MAX_PENDING,
        )
        self.resolver = Resolver(
            link_store=link_store,
            cache=self.cache,
            dispatch=self.recording_queue.submit,
            base_url=settings.BASE_URL,
            enricher=self.enricher,
            cache_ttl_seconds=settings.LINK_CACHE_TTL_SECONDS,
        )
        self.link_service = LinkService(
            link_store=link_store,
            cache=self.cache,
            base_url=settings.BASE_URL,
            code_length=settings.SHORT_CODE_LENGTH,
            cache_ttl_seconds=settings.LINK_CACHE_TTL_SECONDS,
        )
        self.aggregation = AggregationEngine(analytics_store)
        self.stats_service = StatsService(
            engine=self.aggregation,
            cache=self.cache,
            base_url=settings.BASE_URL,
            ttl_seconds=settings.ANALYTICS_CACHE_TTL_SECONDS,
        )

        self._initialized = True
        logger.info(f"Service container initialized: base_url={settings.BASE_URL}")

    async def shutdown(self, drain_timeout: Optional[float] = 10.0) -> None:
        """Drain pending recordings, then release cache, engine and GeoIP reader."""
        if not self._initialized:
            return

        if self.recording_queue is not None:
            await self.recording_queue.drain(timeout=drain_timeout)

        if self.cache is not None:
            try:
                await self.cache.close()
            except Exception as e:
                logger.warning(f"Failed to close cache: {e}")

        if self._geo_lookup is not None:
            self._geo_lookup.close()
            self._geo_lookup = None

        if self.engine is not None:
            await self.engine.dispose()

        self._initialized = False
        logger.info("Service container shut down")
