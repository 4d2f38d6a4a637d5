"""
Background Recording Queue

Visit recording runs detached from the request/response cycle: the redirect
is returned without waiting for the analytics write.

Design:
- Each submitted visit becomes an asyncio task
- A semaphore bounds how many recordings touch the store at once
- Beyond max_pending outstanding visits, new ones are dropped and logged
  (recording is best-effort)
- drain() stops intake and waits for outstanding work on shutdown
"""

import asyncio
import logging
from typing import Optional, Set

from shortlinks.services.recorder import AnalyticsRecorder
from shortlinks.services.schemas import Visit

logger = logging.getLogger(__name__)


class RecordingQueue:
    """Bounded-concurrency, fire-and-forget executor for visit recordings."""

    def __init__(
        self,
        recorder: AnalyticsRecorder,
        max_concurrency: int = 10,
        max_pending: int = 1000,
    ):
        self.recorder = recorder
        self.max_pending = max_pending
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False
        self.dropped = 0

    @property
    def pending(self) -> int:
        return len(self._tasks)

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, visit: Visit) -> bool:
        """
        Schedule a visit for recording without waiting for it.

        Must be called from within a running event loop.

        Returns:
            True if the visit was scheduled, False if it was dropped
        """
        if self._closed:
            logger.warning(f"Recording queue closed, dropping visit to {visit.short_url}")
            self.dropped += 1
            return False

        if len(self._tasks) >= self.max_pending:
            logger.warning(
                f"Recording queue full ({self.max_pending} pending), "
                f"dropping visit to {visit.short_url}"
            )
            self.dropped += 1
            return False

        task = asyncio.create_task(self._run(visit))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _run(self, visit: Visit) -> None:
        async with self._semaphore:
            await self.recorder.record(visit)

    async def join(self) -> None:
        """Wait until every visit submitted so far has been recorded."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def drain(self, timeout: Optional[float] = None) -> None:
        """
        Stop accepting visits and wait for outstanding recordings.

        Args:
            timeout: Seconds to wait before cancelling what is left
        """
        self._closed = True
        if not self._tasks:
            return

        logger.info(f"Draining {len(self._tasks)} pending visit recordings")
        done, not_done = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            logger.warning(f"Cancelled {len(not_done)} visit recordings on shutdown")
            await asyncio.gather(*not_done, return_exceptions=True)
