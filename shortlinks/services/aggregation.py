"""
Aggregation Engine

Read-only rollups over AnalyticsRecords:
- topic_summary: clicks, unique visitors, 7-day series, per-link breakdown
- overall_summary: link count, clicks, unique visitors, 30-day series,
  OS and device breakdowns
- link_analytics: the raw aggregate for a single short link

Semantics:
- "clicks" sum click_count, which only counts first-seen-IP visits
- unique counts are the size of the union of visitor_ips
- date series bucket each record's click_count by the calendar day of its
  last_timestamp, restricted to a trailing window, ascending by day
- breakdown lists keep first-seen order
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Set

from shortlinks.core.exceptions import AnalyticsNotFoundError, TopicNotFoundError
from shortlinks.db.models import AnalyticsRecord, utc_now
from shortlinks.services.schemas import (
    DateBucket,
    LinkAnalytics,
    LinkBreakdown,
    OverallSummary,
    SegmentBreakdown,
    TopicSummary,
)
from shortlinks.stores.interface import AnalyticsStore

TOPIC_WINDOW_DAYS = 7
OVERALL_WINDOW_DAYS = 30


def total_clicks(records: Iterable[AnalyticsRecord]) -> int:
    return sum(record.click_count for record in records)


def unique_ips(records: Iterable[AnalyticsRecord]) -> Set[str]:
    ips: Set[str] = set()
    for record in records:
        ips.update(record.visitor_ips)
    return ips


def clicks_by_date(
    records: Iterable[AnalyticsRecord],
    now: datetime,
    window_days: int,
) -> List[DateBucket]:
    """Sum click counts per day of last_timestamp within the trailing window."""
    since = now - timedelta(days=window_days)
    buckets: Dict[str, int] = {}
    for record in records:
        timestamp = record.last_timestamp
        if timestamp is None:
            continue
        if timestamp.tzinfo is not None:
            timestamp = timestamp.replace(tzinfo=None)
        if timestamp < since:
            continue
        day = timestamp.strftime("%Y-%m-%d")
        buckets[day] = buckets.get(day, 0) + record.click_count
    return [DateBucket(date=day, total_clicks=buckets[day]) for day in sorted(buckets)]


def breakdown_by(
    records: Iterable[AnalyticsRecord],
    key: Callable[[AnalyticsRecord], Optional[str]],
) -> List[SegmentBreakdown]:
    """Group records by a nullable attribute; records without a value are skipped."""
    groups: Dict[str, List[AnalyticsRecord]] = {}
    for record in records:
        value = key(record)
        if value is None:
            continue
        groups.setdefault(value, []).append(record)
    return [
        SegmentBreakdown(
            name=name,
            total_clicks=total_clicks(group),
            unique_users=len(unique_ips(group)),
        )
        for name, group in groups.items()
    ]


class AggregationEngine:
    """
    Computes analytics summaries on demand from the analytics store.

    Args:
        store: Analytics store to read from
        clock: Returns "now" as a naive UTC datetime (injectable for tests)
    """

    def __init__(
        self,
        store: AnalyticsStore,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.clock = clock

    async def topic_summary(self, topic: str) -> TopicSummary:
        """
        Raises:
            TopicNotFoundError: If no analytics exist for the topic
        """
        records = await self.store.list_by_topic(topic)
        if not records:
            raise TopicNotFoundError(topic)

        per_link: Dict[str, List[AnalyticsRecord]] = {}
        for record in records:
            per_link.setdefault(record.short_url, []).append(record)

        return TopicSummary(
            topic=topic,
            total_clicks=total_clicks(records),
            unique_clicks=len(unique_ips(records)),
            clicks_by_date=clicks_by_date(records, self.clock(), TOPIC_WINDOW_DAYS),
            urls=[
                LinkBreakdown(
                    short_url=short_url,
                    total_clicks=total_clicks(group),
                    unique_clicks=len(unique_ips(group)),
                )
                for short_url, group in per_link.items()
            ],
        )

    async def overall_summary(self) -> OverallSummary:
        """
        Raises:
            AnalyticsNotFoundError: If nothing has been recorded yet
        """
        records = await self.store.list_all()
        if not records:
            raise AnalyticsNotFoundError()

        return OverallSummary(
            total_links=len(records),
            total_clicks=total_clicks(records),
            unique_users=len(unique_ips(records)),
            clicks_by_date=clicks_by_date(records, self.clock(), OVERALL_WINDOW_DAYS),
            os_types=breakdown_by(records, lambda record: record.last_os_type),
            device_types=breakdown_by(records, lambda record: record.last_device_type),
        )

    async def link_analytics(self, short_url: str) -> LinkAnalytics:
        """
        Raises:
            AnalyticsNotFoundError: If the link has no recorded visits
        """
        record = await self.store.get(short_url)
        if record is None:
            raise AnalyticsNotFoundError(short_url)
        return LinkAnalytics.from_record(record)
