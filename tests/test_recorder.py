"""
Tests for the analytics recorder and the SQL analytics store.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

import pytest
from sqlalchemy import Text

from shortlinks.db.models import AnalyticsRecord
from shortlinks.services.recorder import AnalyticsRecorder
from shortlinks.services.schemas import Visit
from shortlinks.stores.interface import AnalyticsStore
from tests.conftest import BASE_URL, NOW, make_visit

SHORT_URL = f"{BASE_URL}/abc1234"


class BrokenAnalyticsStore(AnalyticsStore):
    async def get(self, short_url):
        raise RuntimeError("store down")

    async def get_or_create(self, visit):
        raise RuntimeError("store down")

    async def append_visitor(self, visit):
        raise RuntimeError("store down")

    async def list_by_topic(self, topic):
        return []

    async def list_all(self):
        return []


class YieldingAnalyticsStore(AnalyticsStore):
    """In-memory store that yields to the loop between every read and write."""

    def __init__(self):
        self.records: Dict[str, AnalyticsRecord] = {}

    async def get(self, short_url: str) -> Optional[AnalyticsRecord]:
        await asyncio.sleep(0)
        return self.records.get(short_url)

    async def get_or_create(self, visit: Visit) -> Tuple[AnalyticsRecord, bool]:
        existing = await self.get(visit.short_url)
        if existing is not None:
            return existing, False
        record = AnalyticsRecord(
            short_url=visit.short_url,
            long_url=visit.long_url,
            visitor_ips=[visit.ip],
            click_count=1,
        )
        self.records[visit.short_url] = record
        return record, True

    async def append_visitor(self, visit: Visit) -> None:
        await asyncio.sleep(0)
        record = self.records[visit.short_url]
        record.visitor_ips = [*record.visitor_ips, visit.ip]
        record.click_count += 1

    async def list_by_topic(self, topic: str) -> List[AnalyticsRecord]:
        return [r for r in self.records.values() if r.topic == topic]

    async def list_all(self) -> List[AnalyticsRecord]:
        return list(self.records.values())


@pytest.mark.asyncio
async def test_first_visit_creates_record(recorder, analytics_store):
    await recorder.record(make_visit(user_agent="UA-1", location="Sydney, AU", os_type="iOS",
                                     device_type="iPhone", user_id="user-1"))

    record = await analytics_store.get(SHORT_URL)
    assert record.visitor_ips == ["1.2.3.4"]
    assert record.click_count == 1
    assert record.long_url == "https://example.com"
    assert record.topic == "promo"
    assert record.last_user_agent == "UA-1"
    assert record.last_location == "Sydney, AU"
    assert record.last_os_type == "iOS"
    assert record.last_device_type == "iPhone"
    assert record.last_timestamp == NOW
    assert record.user_id == "user-1"


@pytest.mark.asyncio
async def test_repeat_ip_is_idempotent(recorder, analytics_store):
    await recorder.record(make_visit(ip="1.2.3.4", user_agent="first"))
    await recorder.record(make_visit(ip="1.2.3.4", user_agent="second",
                                     timestamp=NOW + timedelta(hours=1)))

    record = await analytics_store.get(SHORT_URL)
    assert record.visitor_ips == ["1.2.3.4"]
    assert record.click_count == 1
    # Snapshot untouched by repeat visits
    assert record.last_user_agent == "first"
    assert record.last_timestamp == NOW


@pytest.mark.asyncio
async def test_new_ip_appends_and_refreshes_snapshot(recorder, analytics_store):
    later = NOW + timedelta(minutes=5)
    await recorder.record(make_visit(ip="1.2.3.4", os_type="Windows"))
    await recorder.record(make_visit(ip="5.6.7.8", os_type="iOS", location="Unknown", timestamp=later))

    record = await analytics_store.get(SHORT_URL)
    assert record.visitor_ips == ["1.2.3.4", "5.6.7.8"]
    assert record.click_count == 2
    assert record.last_os_type == "iOS"
    assert record.last_location == "Unknown"
    assert record.last_timestamp == later


@pytest.mark.asyncio
async def test_scenario_visits(recorder, analytics_store):
    for ip in ("1.2.3.4", "1.2.3.4", "5.6.7.8"):
        await recorder.record(make_visit(ip=ip))

    record = await analytics_store.get(SHORT_URL)
    assert record.visitor_ips == ["1.2.3.4", "5.6.7.8"]
    assert record.click_count == 2


@pytest.mark.asyncio
async def test_visitor_ips_never_shrink(recorder, analytics_store):
    sizes = []
    for ip in ["10.0.0.1", "10.0.0.2", "10.0.0.1", "10.0.0.3", "10.0.0.2", "10.0.0.4"]:
        await recorder.record(make_visit(ip=ip))
        record = await analytics_store.get(SHORT_URL)
        sizes.append(len(record.visitor_ips))

    assert sizes == [1, 2, 2, 3, 3, 4]
    assert sizes == sorted(sizes)


@pytest.mark.asyncio
async def test_ip_forms_are_not_normalized(recorder, analytics_store):
    await recorder.record(make_visit(ip="1.2.3.4"))
    await recorder.record(make_visit(ip="::ffff:1.2.3.4"))

    record = await analytics_store.get(SHORT_URL)
    assert record.visitor_ips == ["1.2.3.4", "::ffff:1.2.3.4"]


@pytest.mark.asyncio
async def test_links_are_tracked_separately(recorder, analytics_store):
    await recorder.record(make_visit(ip="1.2.3.4", short_url=f"{BASE_URL}/aaaaaaa"))
    await recorder.record(make_visit(ip="1.2.3.4", short_url=f"{BASE_URL}/bbbbbbb"))

    assert (await analytics_store.get(f"{BASE_URL}/aaaaaaa")).click_count == 1
    assert (await analytics_store.get(f"{BASE_URL}/bbbbbbb")).click_count == 1


@pytest.mark.asyncio
async def test_get_or_create_returns_existing(analytics_store):
    record, created = await analytics_store.get_or_create(make_visit())
    assert created is True

    again, created_again = await analytics_store.get_or_create(make_visit(ip="9.9.9.9"))
    assert created_again is False
    assert again.id == record.id
    assert again.visitor_ips == ["1.2.3.4"]


@pytest.mark.asyncio
async def test_record_never_raises(caplog):
    recorder = AnalyticsRecorder(BrokenAnalyticsStore())

    with caplog.at_level(logging.ERROR, logger="shortlinks.services.recorder"):
        result = await recorder.record(make_visit())

    assert result is None
    assert "Failed to record visit for" in caplog.text


@pytest.mark.asyncio
async def test_concurrent_first_visits_from_same_ip_may_duplicate():
    store = YieldingAnalyticsStore()
    recorder = AnalyticsRecorder(store)
    await recorder.record(make_visit(ip="1.2.3.4"))

    await asyncio.gather(
        recorder.record(make_visit(ip="5.6.7.8")),
        recorder.record(make_visit(ip="5.6.7.8")),
    )

    record = store.records[SHORT_URL]
    assert record.visitor_ips == ["1.2.3.4", "5.6.7.8", "5.6.7.8"]
    assert record.click_count == 3


def test_user_id_column_has_no_length_limit():
    assert isinstance(AnalyticsRecord.__table__.c.user_id.type, Text)


@pytest.mark.asyncio
async def test_long_user_id_is_stored_unchanged(recorder, analytics_store):
    user_id = "google-oauth2|" + "9" * 300

    await recorder.record(make_visit(ip="1.2.3.4"))
    await recorder.record(make_visit(ip="5.6.7.8", user_id=user_id))

    record = await analytics_store.get(SHORT_URL)
    assert record.visitor_ips == ["1.2.3.4", "5.6.7.8"]
    assert record.click_count == 2
    assert record.user_id == user_id
