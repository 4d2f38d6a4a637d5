"""
Redirect Resolver

Resolves a short code to its destination using cache-aside:

    cache hit  -> use the cached link, never touch the link store
    cache miss -> read the link store, repopulate the cache (1 hour TTL)

In both branches the visit is enriched and handed to the recording queue
without waiting for it.

Error policy:
- cache failures and corrupt cache payloads are treated as misses
- link store failures propagate (StoreUnavailableError)
- enrichment/recording problems are logged, never raised
"""

import logging
from typing import Callable, Optional

from pydantic import ValidationError

from shortlinks.core.exceptions import LinkNotFoundError, StoreUnavailableError
from shortlinks.services.enrichment import VisitEnricher
from shortlinks.services.schemas import CachedLink, DestinationResult, Visit, VisitContext
from shortlinks.stores.cache import link_cache_key
from shortlinks.stores.interface import Cache, LinkStore

logger = logging.getLogger(__name__)

DEFAULT_LINK_TTL_SECONDS = 3600


def build_short_url(base_url: str, code: str) -> str:
    """The fully-qualified short URL for a code."""
    return f"{base_url.rstrip('/')}/{code}"


class Resolver:
    """
    Service for resolving short codes.

    Collaborators are injected so tests can substitute in-memory fakes.
    """

    def __init__(
        self,
        link_store: LinkStore,
        cache: Cache,
        dispatch: Callable[[Visit], object],
        base_url: str,
        enricher: Optional[VisitEnricher] = None,
        cache_ttl_seconds: int = DEFAULT_LINK_TTL_SECONDS,
    ):
        """
        Args:
            link_store: Authoritative link store
            cache: Cache layer for link records
            dispatch: Fire-and-forget hand-off for visits (RecordingQueue.submit)
            base_url: Base used to derive short URLs
            enricher: Visit enrichment (geo, user agent)
            cache_ttl_seconds: Expiration for link cache entries
        """
        self.link_store = link_store
        self.cache = cache
        self.dispatch = dispatch
        self.base_url = base_url
        self.enricher = enricher or VisitEnricher()
        self.cache_ttl_seconds = cache_ttl_seconds

    async def resolve(self, code: str, context: VisitContext) -> DestinationResult:
        """
        Resolve a short code and schedule recording of the visit.

        Raises:
            LinkNotFoundError: If no link exists for the code
            StoreUnavailableError: If the link store cannot be read
        """
        link = await self._from_cache(code)
        from_cache = link is not None

        if link is None:
            record = await self.link_store.get(build_short_url(self.base_url, code))
            if record is None:
                raise LinkNotFoundError(code)
            link = CachedLink.from_record(record)
            await self._populate_cache(link)

        self._record_visit(link, context)

        return DestinationResult(
            code=link.code,
            long_url=link.long_url,
            short_url=link.short_url,
            topic=link.topic,
            from_cache=from_cache,
        )

    async def _from_cache(self, code: str) -> Optional[CachedLink]:
        key = link_cache_key(code)
        try:
            payload = await self.cache.get(key)
        except StoreUnavailableError as e:
            logger.warning(f"Cache read failed for {key}, falling back to store: {e}")
            return None

        if payload is None:
            logger.debug(f"Cache miss for key: {key}")
            return None

        try:
            link = CachedLink.model_validate_json(payload)
        except ValidationError:
            logger.warning(f"Discarding corrupt cache entry for {key}")
            return None

        logger.debug(f"Cache hit for key: {key}")
        return link

    async def _populate_cache(self, link: CachedLink) -> None:
        key = link_cache_key(link.code)
        try:
            await self.cache.set(key, link.model_dump_json(), self.cache_ttl_seconds)
        except StoreUnavailableError as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    def _record_visit(self, link: CachedLink, context: VisitContext) -> None:
        try:
            visit = self.enricher.build_visit(link, context)
            self.dispatch(visit)
        except Exception as e:
            logger.error(f"Failed to schedule visit recording for {link.short_url}: {e}", exc_info=True)
