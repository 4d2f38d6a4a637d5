"""
Database Models for the Short Link Service

This module defines the SQLModel database schemas for:
- LinkRecord: Maps a short code to its destination URL
- AnalyticsRecord: One aggregate row per short link (not a per-visit log)
- UserRecord: Shape of the identity provider's user, referenced weakly

Design Decisions:
- short_url is unique on both tables; analytics rows are keyed by it
- visitor_ips is a JSON list kept in insertion order
- last_* columns hold a snapshot of the latest recorded visit only
- user_id is an opaque reference of any length, without a foreign key
- timestamps are naive UTC
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlmodel import Column, Field, SQLModel


def utc_now() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class LinkRecord(SQLModel, table=True):
    """
    Main table storing short link mappings.

    Fields:
    - code: Unique short code, immutable once created
    - long_url: Destination URL
    - short_url: BASE_URL + "/" + code (derived, unique)
    - topic: Optional grouping label for combined reporting
    - created_at: Creation timestamp (UTC)
    """
    __tablename__ = "short_links"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(
        sa_column=Column(String(20), nullable=False, unique=True, index=True),
        max_length=20
    )
    long_url: str = Field(sa_column=Column(Text, nullable=False))
    short_url: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True, index=True)
    )
    topic: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True, index=True)
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )


class AnalyticsRecord(SQLModel, table=True):
    """
    Cumulative visit statistics for one short link.

    long_url and topic are copied from the link when the row is created.
    click_count only grows when a visitor IP is seen for the first time.
    """
    __tablename__ = "link_analytics"

    id: Optional[int] = Field(default=None, primary_key=True)
    short_url: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True, index=True)
    )
    long_url: str = Field(sa_column=Column(Text, nullable=False))
    topic: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True, index=True)
    )
    visitor_ips: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False)
    )
    last_user_agent: Optional[str] = Field(
        default=None,
        sa_column=Column(String(500), nullable=True)
    )
    last_location: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True)
    )
    last_os_type: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True, index=True)
    )
    last_device_type: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True, index=True)
    )
    last_timestamp: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True, index=True)
    )
    click_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    user_id: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True)
    )


class UserRecord(SQLModel, table=True):
    """Authenticated user, owned by the identity provider."""
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(
        sa_column=Column(String(320), nullable=False, unique=True, index=True)
    )
    first_name: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True)
    )
    last_name: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True)
    )
