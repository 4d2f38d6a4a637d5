"""
Tests for analytics aggregation.
"""

from datetime import datetime, timedelta, timezone

import pytest

from shortlinks.core.exceptions import AnalyticsNotFoundError, TopicNotFoundError
from shortlinks.db.models import AnalyticsRecord, utc_now
from shortlinks.services.aggregation import breakdown_by, clicks_by_date
from tests.conftest import BASE_URL, NOW


def days_ago(days: float):
    return NOW - timedelta(days=days)


class TestClicksByDate:
    """Pure date bucketing, no store involved."""

    def test_groups_by_day_and_sorts_ascending(self):
        records = [
            AnalyticsRecord(short_url="a", long_url="x", click_count=3, last_timestamp=days_ago(1)),
            AnalyticsRecord(short_url="b", long_url="x", click_count=2, last_timestamp=days_ago(4)),
            AnalyticsRecord(short_url="c", long_url="x", click_count=5, last_timestamp=days_ago(1)),
        ]

        buckets = clicks_by_date(records, NOW, window_days=7)

        assert [(b.date, b.total_clicks) for b in buckets] == [
            ("2026-10-15", 2),
            ("2026-10-18", 8),
        ]

    def test_excludes_records_outside_window_or_without_timestamp(self):
        records = [
            AnalyticsRecord(short_url="a", long_url="x", click_count=1, last_timestamp=days_ago(8)),
            AnalyticsRecord(short_url="b", long_url="x", click_count=1, last_timestamp=None),
            AnalyticsRecord(short_url="c", long_url="x", click_count=4, last_timestamp=days_ago(6)),
        ]

        buckets = clicks_by_date(records, NOW, window_days=7)

        assert [(b.date, b.total_clicks) for b in buckets] == [("2026-10-13", 4)]

    def test_breakdown_skips_missing_values_and_keeps_input_order(self):
        records = [
            AnalyticsRecord(short_url="a", long_url="x", click_count=1, visitor_ips=["1"], last_os_type="iOS"),
            AnalyticsRecord(short_url="b", long_url="x", click_count=2, visitor_ips=["2"], last_os_type=None),
            AnalyticsRecord(short_url="c", long_url="x", click_count=3, visitor_ips=["1", "3"], last_os_type="Android"),
            AnalyticsRecord(short_url="d", long_url="x", click_count=4, visitor_ips=["1"], last_os_type="iOS"),
        ]

        result = breakdown_by(records, lambda record: record.last_os_type)

        assert [(s.name, s.total_clicks, s.unique_users) for s in result] == [
            ("iOS", 5, 1),
            ("Android", 3, 2),
        ]


@pytest.mark.asyncio
async def test_topic_summary(aggregation, add_analytics):
    await add_analytics([
        (f"{BASE_URL}/aaaaaaa", dict(topic="promo", click_count=2, visitor_ips=["1.1.1.1", "2.2.2.2"],
                                     last_timestamp=days_ago(1))),
        (f"{BASE_URL}/bbbbbbb", dict(topic="promo", click_count=3, visitor_ips=["2.2.2.2", "3.3.3.3", "4.4.4.4"],
                                     last_timestamp=days_ago(2))),
        (f"{BASE_URL}/ccccccc", dict(topic="promo", click_count=7, visitor_ips=["5.5.5.5"],
                                     last_timestamp=days_ago(20))),
        (f"{BASE_URL}/ddddddd", dict(topic="other", click_count=100, visitor_ips=["9.9.9.9"],
                                     last_timestamp=days_ago(1))),
    ])

    summary = await aggregation.topic_summary("promo")

    assert summary.topic == "promo"
    assert summary.total_clicks == 12
    assert summary.unique_clicks == 5
    assert [(b.date, b.total_clicks) for b in summary.clicks_by_date] == [
        ("2026-10-17", 3),
        ("2026-10-18", 2),
    ]
    assert [(u.short_url, u.total_clicks, u.unique_clicks) for u in summary.urls] == [
        (f"{BASE_URL}/aaaaaaa", 2, 2),
        (f"{BASE_URL}/bbbbbbb", 3, 3),
        (f"{BASE_URL}/ccccccc", 7, 1),
    ]


@pytest.mark.asyncio
async def test_topic_total_clicks_matches_click_count_sum(aggregation, add_analytics, analytics_store):
    await add_analytics([
        (f"{BASE_URL}/l{i}", dict(topic="t1" if i % 2 else "t2", click_count=i, visitor_ips=[f"10.0.0.{i}"]))
        for i in range(1, 8)
    ])

    for topic in ("t1", "t2"):
        records = await analytics_store.list_by_topic(topic)
        summary = await aggregation.topic_summary(topic)
        assert summary.total_clicks == sum(r.click_count for r in records)


@pytest.mark.asyncio
async def test_unknown_topic_is_not_found(aggregation, add_analytics):
    await add_analytics([(f"{BASE_URL}/aaaaaaa", dict(topic="promo", click_count=1, visitor_ips=["1.1.1.1"]))])

    with pytest.raises(TopicNotFoundError):
        await aggregation.topic_summary("missing")


@pytest.mark.asyncio
async def test_overall_summary_empty_is_not_found(aggregation):
    with pytest.raises(AnalyticsNotFoundError):
        await aggregation.overall_summary()


@pytest.mark.asyncio
async def test_overall_summary(aggregation, add_analytics):
    await add_analytics([
        (f"{BASE_URL}/aaaaaaa", dict(topic="promo", click_count=2, visitor_ips=["1.1.1.1", "2.2.2.2"],
                                     last_os_type="iOS", last_device_type="iPhone",
                                     last_timestamp=days_ago(1))),
        (f"{BASE_URL}/bbbbbbb", dict(topic=None, click_count=1, visitor_ips=["2.2.2.2"],
                                     last_os_type="Windows", last_device_type="Desktop",
                                     last_timestamp=days_ago(10))),
        (f"{BASE_URL}/ccccccc", dict(topic="promo", click_count=4, visitor_ips=["3.3.3.3"],
                                     last_os_type="iOS", last_device_type=None,
                                     last_timestamp=days_ago(40))),
    ])

    summary = await aggregation.overall_summary()

    assert summary.total_links == 3
    assert summary.total_clicks == 7
    assert summary.unique_users == 3
    assert [(b.date, b.total_clicks) for b in summary.clicks_by_date] == [
        ("2026-10-09", 1),
        ("2026-10-18", 2),
    ]
    assert [(s.name, s.total_clicks, s.unique_users) for s in summary.os_types] == [
        ("iOS", 6, 3),
        ("Windows", 1, 1),
    ]
    assert [(s.name, s.total_clicks, s.unique_users) for s in summary.device_types] == [
        ("iPhone", 2, 2),
        ("Desktop", 1, 1),
    ]


@pytest.mark.asyncio
async def test_link_analytics(aggregation, add_analytics):
    await add_analytics([
        (f"{BASE_URL}/aaaaaaa", dict(topic="promo", click_count=2, visitor_ips=["1.1.1.1", "2.2.2.2"])),
    ])

    view = await aggregation.link_analytics(f"{BASE_URL}/aaaaaaa")
    assert view.visitor_ips == ["1.1.1.1", "2.2.2.2"]
    assert view.click_count == 2
    assert view.topic == "promo"

    with pytest.raises(AnalyticsNotFoundError):
        await aggregation.link_analytics(f"{BASE_URL}/zzzzzzz")


def test_default_clock_is_naive_utc():
    before = datetime.now(timezone.utc).replace(tzinfo=None)
    now = utc_now()
    after = datetime.now(timezone.utc).replace(tzinfo=None)

    assert now.tzinfo is None
    assert before <= now <= after
