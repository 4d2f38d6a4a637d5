"""
Service-Level Value Types

Pydantic models passed between the resolver, the recorder and the
aggregation engine. The API layer reuses the summary models as response
models.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shortlinks.db.models import AnalyticsRecord, LinkRecord, utc_now


class VisitContext(BaseModel):
    """Request-side facts about a visit, before enrichment."""
    model_config = ConfigDict(frozen=True)

    ip: str
    user_agent: Optional[str] = None
    user_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)


class Visit(BaseModel):
    """A fully enriched visit, as handed to the analytics recorder."""
    model_config = ConfigDict(frozen=True)

    short_url: str
    long_url: str
    ip: str
    user_agent: Optional[str] = None
    timestamp: datetime
    location: Optional[str] = None
    os_type: Optional[str] = None
    device_type: Optional[str] = None
    topic: Optional[str] = None
    user_id: Optional[str] = None

    @field_validator("short_url", "long_url", "ip")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("user_agent")
    @classmethod
    def _truncate_user_agent(cls, value: Optional[str]) -> Optional[str]:
        # Matches the width of link_analytics.last_user_agent
        if value is not None:
            return value[:500]
        return value


class CachedLink(BaseModel):
    """JSON form of a LinkRecord stored under ``link:<code>``."""
    code: str
    long_url: str
    short_url: str
    topic: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_record(cls, record: LinkRecord) -> "CachedLink":
        return cls(
            code=record.code,
            long_url=record.long_url,
            short_url=record.short_url,
            topic=record.topic,
            created_at=record.created_at,
        )


class DestinationResult(BaseModel):
    """Where a short code points, and whether the cache answered."""
    code: str
    long_url: str
    short_url: str
    topic: Optional[str] = None
    from_cache: bool = False


class DateBucket(BaseModel):
    date: str
    total_clicks: int


class LinkBreakdown(BaseModel):
    short_url: str
    total_clicks: int
    unique_clicks: int


class SegmentBreakdown(BaseModel):
    """Clicks and distinct visitors for one OS or device family."""
    name: str
    total_clicks: int
    unique_users: int


class TopicSummary(BaseModel):
    topic: str
    total_clicks: int
    unique_clicks: int
    clicks_by_date: List[DateBucket]
    urls: List[LinkBreakdown]


class OverallSummary(BaseModel):
    total_links: int
    total_clicks: int
    unique_users: int
    clicks_by_date: List[DateBucket]
    os_types: List[SegmentBreakdown]
    device_types: List[SegmentBreakdown]


class LinkAnalytics(BaseModel):
    """Read-only view of a single AnalyticsRecord."""
    model_config = ConfigDict(from_attributes=True)

    short_url: str
    long_url: str
    topic: Optional[str] = None
    visitor_ips: List[str]
    click_count: int
    last_user_agent: Optional[str] = None
    last_location: Optional[str] = None
    last_os_type: Optional[str] = None
    last_device_type: Optional[str] = None
    last_timestamp: Optional[datetime] = None
    user_id: Optional[str] = None

    @classmethod
    def from_record(cls, record: AnalyticsRecord) -> "LinkAnalytics":
        return cls.model_validate(record)
