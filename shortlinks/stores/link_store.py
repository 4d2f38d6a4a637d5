"""
SQL Link Store

Persists LinkRecords through SQLModel. Each call opens its own session from
the session factory.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from shortlinks.core.exceptions import DuplicateCodeError, StoreUnavailableError
from shortlinks.db.models import LinkRecord
from shortlinks.stores.interface import LinkStore


class SQLLinkStore(LinkStore):
    """Link store backed by the ``short_links`` table."""

    def __init__(self, session_maker: async_sessionmaker):
        self.session_maker = session_maker

    async def get(self, short_url: str) -> Optional[LinkRecord]:
        statement = select(LinkRecord).where(LinkRecord.short_url == short_url)
        try:
            async with self.session_maker() as session:
                result = await session.execute(statement)
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreUnavailableError("link store", original_error=e) from e

    async def put(self, record: LinkRecord) -> LinkRecord:
        try:
            async with self.session_maker() as session:
                session.add(record)
                try:
                    await session.commit()
                except IntegrityError as e:
                    await session.rollback()
                    raise DuplicateCodeError(record.code) from e
                await session.refresh(record)
                return record
        except SQLAlchemyError as e:
            raise StoreUnavailableError("link store", original_error=e) from e
