"""Live feed of pending enrollment requests.

Subscribers get the complete pending list, oldest request first, right after
subscribing and again after every enrollment change. Each update replaces the
previous one; a slow subscriber only ever sees the latest snapshot.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.academic import Enrollment
from app.models.enums import EnrollmentStatus
from app.schemas.academic import EnrollmentResponse

logger = logging.getLogger(__name__)

Snapshot = List[Dict[str, Any]]


async def load_pending(db: AsyncSession) -> List[Enrollment]:
    result = await db.execute(
        select(Enrollment)
        .where(Enrollment.status == EnrollmentStatus.PENDING)
        .order_by(Enrollment.created_at.asc())
    )
    return list(result.scalars().all())


class Subscription:
    """Cancellable async iterator of full pending-list snapshots."""

    def __init__(self, feed: "PendingEnrollmentFeed") -> None:
        self._feed = feed
        self._queue: asyncio.Queue[Optional[Snapshot]] = asyncio.Queue(maxsize=1)
        self.cancelled = False

    def push(self, snapshot: Snapshot) -> None:
        """Replace any undelivered snapshot with `snapshot`."""
        if self.cancelled:
            return
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(snapshot)

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        self._feed._subscribers.discard(self)
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Snapshot:
        if self.cancelled and self._queue.empty():
            raise StopAsyncIteration
        snapshot = await self._queue.get()
        if snapshot is None:
            raise StopAsyncIteration
        return snapshot


class PendingEnrollmentFeed:
    def __init__(self, session_factory: Optional[async_sessionmaker] = None) -> None:
        self.session_factory = session_factory
        self._subscribers: Set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _factory(self) -> async_sessionmaker:
        if self.session_factory is None:
            from app.database import AsyncSessionLocal

            self.session_factory = AsyncSessionLocal
        return self.session_factory

    async def snapshot(self) -> Snapshot:
        async with self._factory()() as db:
            pending = await load_pending(db)
        return [EnrollmentResponse.model_validate(e).model_dump(mode="json") for e in pending]

    async def subscribe(self) -> Subscription:
        subscription = Subscription(self)
        self._subscribers.add(subscription)
        subscription.push(await self.snapshot())
        return subscription

    async def notify(self) -> None:
        """Push a fresh snapshot to every subscriber; no-op when nobody listens."""
        if not self._subscribers:
            return
        try:
            snapshot = await self.snapshot()
        except Exception:
            # The write that triggered this already committed; subscribers
            # catch up on the next change
            logger.error("Could not refresh pending enrollment feed", exc_info=True)
            return
        for subscription in list(self._subscribers):
            subscription.push(snapshot)

    def close(self) -> None:
        """End every open subscription."""
        for subscription in list(self._subscribers):
            subscription.cancel()


pending_feed = PendingEnrollmentFeed()
