"""
API Request and Response Schemas

Request models validate input; analytics responses reuse the service-level
summary models directly.
"""

from typing import Optional

from pydantic import BaseModel, Field

from shortlinks.services.schemas import LinkAnalytics, OverallSummary, TopicSummary

__all__ = [
    "ShortenRequest",
    "ShortenResponse",
    "LinkAnalytics",
    "OverallSummary",
    "TopicSummary",
]


class ShortenRequest(BaseModel):
    """Request model for link creation."""
    long_url: str = Field(..., description="The destination URL to shorten")
    topic: Optional[str] = Field(default=None, description="Optional grouping label")


class ShortenResponse(BaseModel):
    """Response model for link creation."""
    code: str = Field(..., description="The generated short code")
    short_url: str = Field(..., description="The complete short URL")
    long_url: str = Field(..., description="The destination URL")
    topic: Optional[str] = None
