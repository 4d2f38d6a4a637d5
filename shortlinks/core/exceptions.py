"""
Custom Exceptions

This module defines the error taxonomy for the short link service.

- NotFoundError family: a code, topic or analytics record has no data
  (surfaced to callers as a negative result)
- StoreUnavailableError: cache or store I/O failed (absorbed for the cache,
  propagated for the store of truth)
- RecordingFailure: analytics recording failed (always absorbed and logged)
"""

from typing import Optional


class ShortLinkException(Exception):
    """Base exception for the short link service."""
    pass


class InvalidURLError(ShortLinkException):
    """Raised when URL validation fails."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class NotFoundError(ShortLinkException):
    """Base class for lookups that produced no record."""
    pass


class LinkNotFoundError(NotFoundError):
    """Raised when a short code has no link record."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Short code '{code}' not found")


class TopicNotFoundError(NotFoundError):
    """Raised when no analytics exist for a topic."""

    def __init__(self, topic: str):
        self.topic = topic
        super().__init__(f"No analytics data found for topic '{topic}'")


class AnalyticsNotFoundError(NotFoundError):
    """Raised when a link (or the whole service) has no recorded visits."""

    def __init__(self, short_url: Optional[str] = None):
        self.short_url = short_url
        if short_url:
            super().__init__(f"No analytics data found for '{short_url}'")
        else:
            super().__init__("No analytics data found")


class DuplicateCodeError(ShortLinkException):
    """Raised by the link store when a code is already taken."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Short code '{code}' already exists")


class StoreUnavailableError(ShortLinkException):
    """Raised when the cache or a persistent store cannot be reached."""

    def __init__(self, store_name: str, original_error: Optional[Exception] = None):
        self.store_name = store_name
        self.original_error = original_error
        detail = f": {original_error}" if original_error else ""
        super().__init__(f"Store '{store_name}' is unavailable{detail}")


class RecordingFailure(ShortLinkException):
    """Wraps any error raised while recording a visit."""

    def __init__(self, short_url: str, original_error: Exception):
        self.short_url = short_url
        self.original_error = original_error
        super().__init__(f"Failed to record visit for {short_url}: {original_error}")
