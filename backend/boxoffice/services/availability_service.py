"""
Seat availability projection for a single event.

A seat is `booked` when a confirmed booking holds it, `locked` when a live
lock exists, and `available` otherwise. Pending bookings are deliberately not
shown as booked: this view answers "may a new session try to lock this seat",
and the lock manager still rejects seats held by a pending booking.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.core.logging import get_logger
from boxoffice.db.base import as_utc, utcnow
from boxoffice.models import Booking, BookingSeat, BookingStatus, Seat, SeatLock
from boxoffice.services.event_service import get_event
from boxoffice.services.lock_service import purge_expired_locks

logger = get_logger(__name__)

AVAILABLE = "available"
LOCKED = "locked"
BOOKED = "booked"


@dataclass
class SeatState:
    seat_id: str
    row_label: str
    seat_number: int
    tier: str
    status: str
    held_by_you: bool = False
    lock_expires: Optional[datetime] = None


@dataclass
class SeatMap:
    event_id: str
    seats: List[SeatState]
    seats_by_row: Dict[str, List[SeatState]] = field(default_factory=dict)

    def counts(self) -> Dict[str, int]:
        totals = {AVAILABLE: 0, LOCKED: 0, BOOKED: 0}
        for seat in self.seats:
            totals[seat.status] += 1
        return totals


async def project_availability(
    db: AsyncSession,
    event_id: str,
    *,
    session_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> SeatMap:
    now = now or utcnow()
    event = await get_event(db, event_id)
    await purge_expired_locks(db, now=now)

    seats = (await db.execute(select(Seat).where(Seat.venue_id == event.venue_id))).scalars().all()

    booked = set((await db.execute(
        select(BookingSeat.seat_id)
        .join(Booking, Booking.id == BookingSeat.booking_id)
        .where(Booking.event_id == event_id, Booking.status == BookingStatus.CONFIRMED.value)
    )).scalars())

    locks = {
        lock.seat_id: lock
        for lock in (await db.execute(
            select(SeatLock).where(SeatLock.event_id == event_id, SeatLock.expires_at > now)
        )).scalars()
    }

    states = []
    for seat in sorted(seats, key=lambda s: (s.row_label, s.seat_number)):
        lock = locks.get(seat.id)
        if seat.id in booked:
            state = SeatState(seat.id, seat.row_label, seat.seat_number, seat.tier, BOOKED)
        elif lock is not None:
            state = SeatState(
                seat.id, seat.row_label, seat.seat_number, seat.tier, LOCKED,
                held_by_you=bool(session_id) and lock.session_id == session_id,
                lock_expires=as_utc(lock.expires_at),
            )
        else:
            state = SeatState(seat.id, seat.row_label, seat.seat_number, seat.tier, AVAILABLE)
        states.append(state)

    seat_map = SeatMap(event_id=event_id, seats=states)
    for state in states:
        seat_map.seats_by_row.setdefault(state.row_label, []).append(state)

    logger.debug("availability_projected", event_id=event_id, **seat_map.counts())
    return seat_map
