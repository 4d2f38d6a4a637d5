"""
Database Adapters

SQLite is the default (local development, tests, single-instance deployments);
PostgreSQL is selected automatically for postgresql URLs.

Key SQLite characteristics:
- File-based (single .db file), or purely in memory for tests
- Single writer at a time (file locking)
"""

from typing import Any, Optional

from sqlalchemy.pool import NullPool, Pool, StaticPool

from shortlinks.db.interface import DatabaseAdapter


def is_memory_url(database_url: str) -> bool:
    """True for SQLite URLs that point at a private in-memory database."""
    return database_url.endswith("://") or ":memory:" in database_url


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.

    File databases use NullPool (a fresh connection per checkout). In-memory
    databases use StaticPool so every session sees the same database.
    """

    def get_pool_class(self, database_url: str) -> type[Pool]:
        if is_memory_url(database_url):
            return StaticPool
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "check_same_thread": False
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }


class PostgreSQLAdapter(DatabaseAdapter):
    """PostgreSQL adapter (asyncpg driver) with a bounded connection pool."""

    def get_pool_class(self, database_url: str) -> Optional[type[Pool]]:
        return None

    def get_connect_args(self) -> dict[str, Any]:
        return {}

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
        }


def get_database_adapter(database_url: str) -> DatabaseAdapter:
    """
    Factory function to get the database adapter for a connection string.

    Returns:
        DatabaseAdapter instance (SQLite unless the URL is PostgreSQL)
    """
    if database_url.startswith("postgresql"):
        return PostgreSQLAdapter()
    return SQLiteAdapter()
