"""
Link Creation Service

Creates short links:
- validates the destination URL
- generates a random fixed-length base62 code
- persists the LinkRecord and warms the cache under link:<code>

Why Base62?
- More compact than base10 (fewer characters needed)
- URL-safe (no special characters)
- Case-sensitive (more combinations per character)
"""

import logging
import secrets
from typing import Optional

from shortlinks.core.exceptions import DuplicateCodeError, InvalidURLError, StoreUnavailableError
from shortlinks.core.validators import is_valid_url, normalize_topic
from shortlinks.db.models import LinkRecord
from shortlinks.services.resolver import DEFAULT_LINK_TTL_SECONDS, build_short_url
from shortlinks.services.schemas import CachedLink
from shortlinks.stores.cache import link_cache_key
from shortlinks.stores.interface import Cache, LinkStore

logger = logging.getLogger(__name__)

BASE62_CHARS = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
BASE62_LENGTH = len(BASE62_CHARS)

MAX_CODE_ATTEMPTS = 5


def encode_base62(number: int, min_length: int = 7) -> str:
    """
    Encode a number to base62 string with fixed length.

    Example:
        encode_base62(0) -> "0000000"
        encode_base62(62) -> "0000010"
    """
    if number == 0:
        return BASE62_CHARS[0] * min_length

    digits = []
    while number > 0:
        number, remainder = divmod(number, BASE62_LENGTH)
        digits.append(BASE62_CHARS[remainder])

    code = ''.join(reversed(digits))
    return code.rjust(min_length, BASE62_CHARS[0])


def generate_code(length: int = 7) -> str:
    """Random base62 code of exactly ``length`` characters."""
    return encode_base62(secrets.randbelow(BASE62_LENGTH ** length), min_length=length)


class LinkService:
    """Creates and persists short links."""

    def __init__(
        self,
        link_store: LinkStore,
        cache: Cache,
        base_url: str,
        code_length: int = 7,
        cache_ttl_seconds: int = DEFAULT_LINK_TTL_SECONDS,
    ):
        self.link_store = link_store
        self.cache = cache
        self.base_url = base_url
        self.code_length = code_length
        self.cache_ttl_seconds = cache_ttl_seconds

    async def create_link(self, long_url: str, topic: Optional[str] = None) -> LinkRecord:
        """
        Create a new short link.

        Args:
            long_url: Destination URL
            topic: Optional grouping label

        Returns:
            The persisted LinkRecord

        Raises:
            InvalidURLError: If the URL is not an acceptable http(s) URL
            DuplicateCodeError: If no free code was found after several attempts
            StoreUnavailableError: If the link store cannot be written
        """
        if not is_valid_url(long_url):
            raise InvalidURLError(
                long_url,
                reason="Invalid URL format. URL must use http:// or https:// and have a valid domain"
            )

        topic = normalize_topic(topic)
        last_error: Optional[DuplicateCodeError] = None

        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            code = generate_code(self.code_length)
            record = LinkRecord(
                code=code,
                long_url=long_url,
                short_url=build_short_url(self.base_url, code),
                topic=topic,
            )
            try:
                record = await self.link_store.put(record)
            except DuplicateCodeError as e:
                logger.warning(f"Short code collision on attempt {attempt}: {code}")
                last_error = e
                continue

            await self._warm_cache(record)
            logger.info(f"Created short link {record.short_url} -> {record.long_url}")
            return record

        raise last_error

    async def _warm_cache(self, record: LinkRecord) -> None:
        key = link_cache_key(record.code)
        try:
            await self.cache.set(
                key,
                CachedLink.from_record(record).model_dump_json(),
                self.cache_ttl_seconds,
            )
        except StoreUnavailableError as e:
            logger.warning(f"Cache write failed for {key}: {e}")
