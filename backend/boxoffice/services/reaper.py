"""
Expiry reaper: background task that returns lapsed seats to the pool.

Each tick deletes every seat lock whose expiry has passed. The same purge
also runs at the start of every lock request and seat-map read, so callers
never see a stale lock even between ticks; the reaper only keeps the table
small when nobody is asking.

Optionally (PENDING_BOOKING_TTL_MINUTES) it abandons pending bookings that
were never paid, which releases their seats. Each abandonment takes the
booking's settlement lock and is a conditional update, so it cannot race a
payment in flight.

A failing tick (e.g. the database is briefly unreachable) is logged and
retried on the next tick. It never stops the loop.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.core.concurrency import KeyedLocks
from boxoffice.core.logging import get_logger
from boxoffice.core.metrics import abandoned_bookings
from boxoffice.db.base import utcnow
from boxoffice.db.session import Database, transaction
from boxoffice.models import Booking, BookingStatus
from boxoffice.services.lock_service import purge_expired_locks

logger = get_logger(__name__)


async def abandon_stale_bookings(
    db: AsyncSession,
    booking_locks: KeyedLocks,
    ttl: timedelta,
    *,
    now: Optional[datetime] = None,
) -> int:
    """Move pending bookings older than `ttl` to abandoned. Returns how many."""
    now = now or utcnow()
    cutoff = now - ttl
    stale_ids = (await db.execute(
        select(Booking.id).where(
            Booking.status == BookingStatus.PENDING.value,
            Booking.created_at < cutoff,
        )
    )).scalars().all()
    await db.commit()

    abandoned = 0
    for booking_id in stale_ids:
        async with booking_locks.hold(booking_id):
            async with transaction(db, "abandon_stale_booking"):
                result = await db.execute(
                    update(Booking)
                    .where(Booking.id == booking_id, Booking.status == BookingStatus.PENDING.value)
                    .values(status=BookingStatus.ABANDONED.value, updated_at=now)
                    .execution_options(synchronize_session=False)
                )
        if result.rowcount:
            abandoned += 1
            logger.info("stale_booking_abandoned", booking_id=booking_id)

    if abandoned:
        abandoned_bookings.inc(abandoned)
    return abandoned


class ExpiryReaper:

    def __init__(
        self,
        database: Database,
        booking_locks: KeyedLocks,
        *,
        interval_seconds: float = 30.0,
        pending_booking_ttl: Optional[timedelta] = None,
    ):
        self.database = database
        self.booking_locks = booking_locks
        self.interval_seconds = interval_seconds
        self.pending_booking_ttl = pending_booking_ttl
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self, *, now: Optional[datetime] = None) -> dict:
        """One reaper tick. Returns what was cleaned up."""
        now = now or utcnow()
        async with self.database.session() as db:
            purged = await purge_expired_locks(db, now=now)
            abandoned = 0
            if self.pending_booking_ttl is not None:
                abandoned = await abandon_stale_bookings(
                    db, self.booking_locks, self.pending_booking_ttl, now=now
                )
        return {"purged_locks": purged, "abandoned_bookings": abandoned}

    async def _run(self) -> None:
        logger.info(
            "reaper_started",
            interval_seconds=self.interval_seconds,
            pending_booking_ttl=str(self.pending_booking_ttl) if self.pending_booking_ttl else None,
        )
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("reaper_tick_failed", error=str(e))
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="expiry-reaper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("reaper_stopped")
