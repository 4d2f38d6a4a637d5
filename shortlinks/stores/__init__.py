"""
Store and cache implementations behind the interfaces in ``interface.py``.
"""

from shortlinks.stores.analytics_store import SQLAnalyticsStore
from shortlinks.stores.cache import InMemoryCache, RedisCache
from shortlinks.stores.interface import AnalyticsStore, Cache, LinkStore
from shortlinks.stores.link_store import SQLLinkStore

__all__ = [
    "AnalyticsStore",
    "Cache",
    "LinkStore",
    "InMemoryCache",
    "RedisCache",
    "SQLAnalyticsStore",
    "SQLLinkStore",
]
