"""
Store and Cache Interfaces

The resolver, recorder and aggregation engine depend only on these
contracts. Production implementations are SQL-backed (links, analytics)
and Redis-backed (cache); tests substitute in-memory implementations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from shortlinks.db.models import AnalyticsRecord, LinkRecord
from shortlinks.services.schemas import Visit


class LinkStore(ABC):
    """Durable mapping from short URL to link record."""

    @abstractmethod
    async def get(self, short_url: str) -> Optional[LinkRecord]:
        """
        Look up a link by its fully-qualified short URL.

        Raises:
            StoreUnavailableError: If the store cannot be read
        """

    @abstractmethod
    async def put(self, record: LinkRecord) -> LinkRecord:
        """
        Persist a new link record.

        Raises:
            DuplicateCodeError: If the code (or short URL) already exists
            StoreUnavailableError: If the store cannot be written
        """


class AnalyticsStore(ABC):
    """One aggregate analytics record per short URL."""

    @abstractmethod
    async def get(self, short_url: str) -> Optional[AnalyticsRecord]:
        pass

    @abstractmethod
    async def get_or_create(self, visit: Visit) -> Tuple[AnalyticsRecord, bool]:
        """
        Return the record for ``visit.short_url``, creating it if missing.

        A new record is seeded from the visit: ``visitor_ips == [visit.ip]``,
        ``click_count == 1`` and the last_* snapshot taken from the visit.

        Returns:
            (record, created)
        """

    @abstractmethod
    async def append_visitor(self, visit: Visit) -> None:
        """
        Append ``visit.ip`` to the record's visitors, bump its click count
        and overwrite the last_* snapshot.

        Does not re-check membership; callers decide whether the IP is new.
        """

    @abstractmethod
    async def list_by_topic(self, topic: str) -> List[AnalyticsRecord]:
        pass

    @abstractmethod
    async def list_all(self) -> List[AnalyticsRecord]:
        pass


class Cache(ABC):
    """Key-value cache with expiring entries."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Raises:
            StoreUnavailableError: If the cache backend fails
        """

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """
        Raises:
            StoreUnavailableError: If the cache backend fails
        """

    async def connect(self) -> None:
        """Open connections before serving (no-op by default)."""

    async def close(self) -> None:
        """Release connections on shutdown (no-op by default)."""
