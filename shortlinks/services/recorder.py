"""
Analytics Recorder

Maintains one aggregate AnalyticsRecord per short link:
- first visit to a link creates the record (visitor_ips = [ip], click_count = 1)
- a visit from an IP not yet seen appends it, bumps click_count and
  refreshes the last_* snapshot
- a visit from an already seen IP changes nothing

Design Decisions:
- IPs are compared as exact strings (no IPv4 / IPv4-mapped IPv6 folding)
- record() never raises: redirect correctness must not depend on analytics
- the membership check and the append are separate store calls; concurrent
  first visits from one IP can therefore both append it
"""

import logging

from shortlinks.core.exceptions import RecordingFailure
from shortlinks.services.schemas import Visit
from shortlinks.stores.interface import AnalyticsStore

logger = logging.getLogger(__name__)


class AnalyticsRecorder:
    """
    Service for recording visits into per-link analytics.

    Designed to run detached from the request (see RecordingQueue).
    """

    def __init__(self, store: AnalyticsStore):
        self.store = store

    async def record(self, visit: Visit) -> None:
        """
        Record a visit. Failures are logged and swallowed, never retried.

        Args:
            visit: Enriched visit to record
        """
        try:
            await self._record(visit)
        except Exception as e:
            failure = RecordingFailure(visit.short_url, e)
            logger.error(str(failure), exc_info=True)

    async def _record(self, visit: Visit) -> None:
        record, created = await self.store.get_or_create(visit)
        if created:
            logger.debug(f"Created analytics for {visit.short_url}")
            return

        if visit.ip in record.visitor_ips:
            return

        await self.store.append_visitor(visit)
        logger.debug(f"New visitor {visit.ip} for {visit.short_url}")
