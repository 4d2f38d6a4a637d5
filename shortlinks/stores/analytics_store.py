"""
SQL Analytics Store

Persists the single AnalyticsRecord kept per short URL.

Concurrency:
- get_or_create relies on the unique short_url index: a losing concurrent
  insert rolls back and returns the winner's row
- append_visitor reads the current IP list and writes it back with one more
  entry; it is not serialized against other writers, so two concurrent
  first visits from the same IP can both land (accepted data-quality slack)
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from shortlinks.core.exceptions import StoreUnavailableError
from shortlinks.db.models import AnalyticsRecord
from shortlinks.services.schemas import Visit
from shortlinks.stores.interface import AnalyticsStore

logger = logging.getLogger(__name__)


def _snapshot(visit: Visit) -> dict:
    """Columns overwritten on every recorded visit."""
    return {
        "last_user_agent": visit.user_agent,
        "last_location": visit.location,
        "last_os_type": visit.os_type,
        "last_device_type": visit.device_type,
        "last_timestamp": visit.timestamp,
        "user_id": visit.user_id,
    }


class SQLAnalyticsStore(AnalyticsStore):
    """Analytics store backed by the ``link_analytics`` table."""

    def __init__(self, session_maker: async_sessionmaker):
        self.session_maker = session_maker

    async def get(self, short_url: str) -> Optional[AnalyticsRecord]:
        statement = select(AnalyticsRecord).where(AnalyticsRecord.short_url == short_url)
        try:
            async with self.session_maker() as session:
                result = await session.execute(statement)
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreUnavailableError("analytics store", original_error=e) from e

    async def get_or_create(self, visit: Visit) -> Tuple[AnalyticsRecord, bool]:
        existing = await self.get(visit.short_url)
        if existing is not None:
            return existing, False

        record = AnalyticsRecord(
            short_url=visit.short_url,
            long_url=visit.long_url,
            topic=visit.topic,
            visitor_ips=[visit.ip],
            click_count=1,
            **_snapshot(visit)
        )
        try:
            async with self.session_maker() as session:
                session.add(record)
                try:
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    logger.debug(f"Analytics row for {visit.short_url} created concurrently")
                    winner = await self.get(visit.short_url)
                    if winner is None:
                        raise
                    return winner, False
                await session.refresh(record)
                return record, True
        except SQLAlchemyError as e:
            raise StoreUnavailableError("analytics store", original_error=e) from e

    async def append_visitor(self, visit: Visit) -> None:
        try:
            async with self.session_maker() as session:
                result = await session.execute(
                    select(AnalyticsRecord.visitor_ips)
                    .where(AnalyticsRecord.short_url == visit.short_url)
                )
                current = result.scalar_one_or_none()
                if current is None:
                    logger.warning(f"No analytics row to append to for {visit.short_url}")
                    return

                statement = (
                    update(AnalyticsRecord)
                    .where(AnalyticsRecord.short_url == visit.short_url)
                    .values(
                        visitor_ips=[*current, visit.ip],
                        click_count=AnalyticsRecord.click_count + 1,
                        **_snapshot(visit)
                    )
                )
                await session.execute(statement)
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreUnavailableError("analytics store", original_error=e) from e

    async def list_by_topic(self, topic: str) -> List[AnalyticsRecord]:
        statement = (
            select(AnalyticsRecord)
            .where(AnalyticsRecord.topic == topic)
            .order_by(AnalyticsRecord.id)
        )
        return await self._list(statement)

    async def list_all(self) -> List[AnalyticsRecord]:
        return await self._list(select(AnalyticsRecord).order_by(AnalyticsRecord.id))

    async def _list(self, statement) -> List[AnalyticsRecord]:
        try:
            async with self.session_maker() as session:
                result = await session.execute(statement)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreUnavailableError("analytics store", original_error=e) from e
