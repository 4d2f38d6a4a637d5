"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface and the SQLite/PostgreSQL adapters
- SQLModel tables for links, analytics and users
- Engine/session factories used by the service container
"""

from shortlinks.db.interface import DatabaseAdapter
from shortlinks.db.models import AnalyticsRecord, LinkRecord, UserRecord
from shortlinks.db.session import create_engine_for_url, create_session_maker, create_tables

__all__ = [
    "DatabaseAdapter",
    "AnalyticsRecord",
    "LinkRecord",
    "UserRecord",
    "create_engine_for_url",
    "create_session_maker",
    "create_tables",
]
