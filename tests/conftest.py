"""Pytest configuration and fixtures."""

from datetime import datetime
from typing import List, Optional, Tuple

import pytest

from shortlinks.core.exceptions import StoreUnavailableError
from shortlinks.db.models import AnalyticsRecord, LinkRecord
from shortlinks.db.session import create_engine_for_url, create_session_maker, create_tables
from shortlinks.services.aggregation import AggregationEngine
from shortlinks.services.background_tasks import RecordingQueue
from shortlinks.services.enrichment import GeoLocation, VisitEnricher
from shortlinks.services.link_service import LinkService
from shortlinks.services.recorder import AnalyticsRecorder
from shortlinks.services.resolver import Resolver
from shortlinks.services.schemas import Visit, VisitContext
from shortlinks.stores.analytics_store import SQLAnalyticsStore
from shortlinks.stores.cache import InMemoryCache
from shortlinks.stores.interface import Cache, LinkStore
from shortlinks.stores.link_store import SQLLinkStore

BASE_URL = "https://sho.rt"
NOW = datetime(2026, 10, 19, 12, 0, 0)

IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_5 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.5 Mobile/15E148 Safari/604.1"
)
WINDOWS_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class FakeClock:
    """Monotonic seconds that only move when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingCache(Cache):
    """Cache whose backend is always down."""

    def __init__(self):
        self.calls = 0

    async def get(self, key: str) -> Optional[str]:
        self.calls += 1
        raise StoreUnavailableError("cache")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.calls += 1
        raise StoreUnavailableError("cache")


class CountingLinkStore(LinkStore):
    """Wraps a link store and counts reads."""

    def __init__(self, inner: LinkStore):
        self.inner = inner
        self.gets = 0

    async def get(self, short_url: str) -> Optional[LinkRecord]:
        self.gets += 1
        return await self.inner.get(short_url)

    async def put(self, record: LinkRecord) -> LinkRecord:
        return await self.inner.put(record)


def fake_geo_lookup(ip: str) -> Optional[GeoLocation]:
    if ip.startswith("1."):
        return GeoLocation(city="Sydney", country="AU")
    return None


def make_visit(
    ip: str = "1.2.3.4",
    short_url: str = f"{BASE_URL}/abc1234",
    topic: Optional[str] = "promo",
    timestamp: datetime = NOW,
    **fields,
) -> Visit:
    return Visit(
        short_url=short_url,
        long_url=fields.pop("long_url", "https://example.com"),
        ip=ip,
        topic=topic,
        timestamp=timestamp,
        **fields,
    )


def make_context(ip: str = "1.2.3.4", user_agent: Optional[str] = WINDOWS_UA, **fields) -> VisitContext:
    return VisitContext(ip=ip, user_agent=user_agent, timestamp=fields.pop("timestamp", NOW), **fields)


@pytest.fixture
async def engine():
    engine = create_engine_for_url("sqlite+aiosqlite://")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return create_session_maker(engine)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> InMemoryCache:
    return InMemoryCache(clock=clock)


@pytest.fixture
def link_store(session_maker) -> CountingLinkStore:
    return CountingLinkStore(SQLLinkStore(session_maker))


@pytest.fixture
def analytics_store(session_maker) -> SQLAnalyticsStore:
    return SQLAnalyticsStore(session_maker)


@pytest.fixture
def recorder(analytics_store) -> AnalyticsRecorder:
    return AnalyticsRecorder(analytics_store)


@pytest.fixture
async def recording_queue(recorder):
    queue = RecordingQueue(recorder, max_concurrency=1)
    yield queue
    await queue.drain()


@pytest.fixture
def enricher() -> VisitEnricher:
    return VisitEnricher(geo_lookup=fake_geo_lookup)


@pytest.fixture
def resolver(link_store, cache, recording_queue, enricher) -> Resolver:
    return Resolver(
        link_store=link_store,
        cache=cache,
        dispatch=recording_queue.submit,
        base_url=BASE_URL,
        enricher=enricher,
    )


@pytest.fixture
def link_service(link_store, cache) -> LinkService:
    return LinkService(link_store=link_store, cache=cache, base_url=BASE_URL)


@pytest.fixture
def aggregation(analytics_store) -> AggregationEngine:
    return AggregationEngine(analytics_store, clock=lambda: NOW)


@pytest.fixture
def add_analytics(session_maker):
    """Insert AnalyticsRecords directly, bypassing the recorder."""

    async def _add(records: List[Tuple[str, dict]]) -> None:
        async with session_maker() as session:
            for short_url, fields in records:
                fields = dict(fields)
                fields.setdefault("long_url", "https://example.com")
                session.add(AnalyticsRecord(short_url=short_url, **fields))
            await session.commit()

    return _add
