"""
Visit Enrichment

Black-box enrichment of a raw visit:
- geo lookup: IP -> (city, country), via a MaxMind City database (geoip2)
- classification: User-Agent -> (OS family, device family), via user-agents

VisitEnricher combines a link with request context into a Visit. Each
enrichment step degrades to an empty answer instead of failing.
"""

import logging
from typing import Callable, Optional

import geoip2.database
from geoip2.errors import AddressNotFoundError
from pydantic import BaseModel
from user_agents import parse as parse_user_agent

from shortlinks.services.schemas import CachedLink, Visit, VisitContext

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = "Unknown"


class GeoLocation(BaseModel):
    city: Optional[str] = None
    country: Optional[str] = None


class DeviceInfo(BaseModel):
    os_family: str
    device_family: str


GeoLookup = Callable[[str], Optional[GeoLocation]]
Classifier = Callable[[Optional[str]], DeviceInfo]


def classify_user_agent(user_agent: Optional[str]) -> DeviceInfo:
    """
    Classify a User-Agent string.

    The parser reports desktops as device family "Other"; they are
    reported as "Desktop" here.
    """
    parsed = parse_user_agent(user_agent or "")
    device_family = parsed.device.family
    if device_family == "Other":
        device_family = "Desktop"
    return DeviceInfo(os_family=parsed.os.family, device_family=device_family)


def no_geo_lookup(ip: str) -> Optional[GeoLocation]:
    return None


class GeoIPLookup:
    """Callable IP -> GeoLocation lookup over a GeoLite2/GeoIP2 City database."""

    def __init__(self, database_path: str):
        self.database_path = database_path
        self._reader = geoip2.database.Reader(database_path)

    def __call__(self, ip: str) -> Optional[GeoLocation]:
        try:
            response = self._reader.city(ip)
        except (AddressNotFoundError, ValueError):
            return None
        return GeoLocation(city=response.city.name, country=response.country.iso_code)

    def close(self) -> None:
        self._reader.close()


def format_location(geo: Optional[GeoLocation]) -> str:
    """
    Render a lookup result as "<city>, <country>".

    A missing city or country is left out; with neither the location is
    "Unknown".
    """
    if geo is None:
        return UNKNOWN_LOCATION
    parts = [part for part in (geo.city, geo.country) if part]
    if not parts:
        return UNKNOWN_LOCATION
    return ", ".join(parts)


class VisitEnricher:
    """Builds enriched Visits from a resolved link and the request context."""

    def __init__(
        self,
        geo_lookup: GeoLookup = no_geo_lookup,
        classifier: Classifier = classify_user_agent,
    ):
        self.geo_lookup = geo_lookup
        self.classifier = classifier

    def build_visit(self, link: CachedLink, context: VisitContext) -> Visit:
        return Visit(
            short_url=link.short_url,
            long_url=link.long_url,
            topic=link.topic,
            ip=context.ip,
            user_agent=context.user_agent,
            timestamp=context.timestamp,
            user_id=context.user_id,
            location=self._location(context.ip),
            **self._device(context.user_agent)
        )

    def _location(self, ip: str) -> str:
        try:
            return format_location(self.geo_lookup(ip))
        except Exception as e:
            logger.warning(f"Geo lookup failed for {ip}: {e}")
            return UNKNOWN_LOCATION

    def _device(self, user_agent: Optional[str]) -> dict:
        try:
            info = self.classifier(user_agent)
        except Exception as e:
            logger.warning(f"User-Agent classification failed: {e}")
            return {"os_type": None, "device_type": None}
        return {"os_type": info.os_family, "device_type": info.device_family}
