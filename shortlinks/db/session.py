"""
Database Engine and Session Management

Engines and session factories are created by the service container at startup
rather than at import time, so tests can point them at an in-memory database.

Stores open one short-lived session per operation. Background recordings
therefore never share a session with the request that triggered them.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from shortlinks.db import models  # noqa: F401  (registers tables on SQLModel.metadata)
from shortlinks.db.sqlite_adapter import get_database_adapter


def create_engine_for_url(database_url: str, **kwargs) -> AsyncEngine:
    """Create an async engine configured by the matching database adapter."""
    db_adapter = get_database_adapter(database_url)
    return db_adapter.create_engine(database_url, **kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """
    Create the async session factory.

    expire_on_commit=False keeps loaded records usable after the session
    that loaded them has closed.
    """
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create any missing tables (local development and tests)."""
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
