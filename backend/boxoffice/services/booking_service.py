"""
Booking coordinator: turns a session's seat locks into a pending booking.

CONCURRENCY STRATEGY: One critical section per event
====================================================

Problem:
  "Are my locks still valid?" and "insert the booking" are two steps. If a
  lock expires, gets purged, or is stolen between them, two buyers can end up
  with the same seat.

Solution:
  Both steps (plus pricing, the booking_seats inserts and the lock cleanup)
  run inside the event's asyncio.Lock and inside one database transaction.
  The lock manager takes the same per-event lock, so no acquire, release or
  competing booking for the event can interleave. Any failure rolls the
  transaction back, leaving neither a partial booking nor consumed locks.

After commit the seats are protected by the pending booking's existence, not
by the lock table: the lock manager reports them as `booked`.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.core.concurrency import KeyedLocks
from boxoffice.core.exceptions import (
    BookingFailedError,
    BoxOfficeError,
    InternalFailure,
    LockExpiredError,
    NotFoundError,
    SeatConflictError,
    ValidationError,
)
from boxoffice.core.logging import get_logger
from boxoffice.core.metrics import booking_latency, record_booking_attempt
from boxoffice.db.base import utcnow
from boxoffice.db.session import transaction
from boxoffice.models import Booking, BookingSeat, BookingStatus, Event, Payment, Seat, SeatLock, SeatTier, Venue
from boxoffice.services.event_service import get_event
from boxoffice.services.lock_service import claimed_seat_ids, held_seat_ids, load_event_seats, normalize_seat_ids

logger = get_logger(__name__)

CENTS = Decimal("0.01")


@dataclass
class Buyer:
    email: str
    name: str
    phone: Optional[str] = None


@dataclass
class BookingDetail:
    booking: Booking
    event: Event
    venue: Venue
    seats: List[tuple]  # (Seat, snapshot price)
    payment: Optional[Payment]


def resolve_seat_price(event: Event, tier: str) -> Decimal:
    """
    Price one seat of the given tier for this event.

    Events without an explicit tier price derive it from the base price:
    vip is double, premium is one and a half times base.
    """
    base = Decimal(event.base_price)
    if tier == SeatTier.VIP.value:
        price = event.vip_price if event.vip_price else base * 2
    elif tier == SeatTier.PREMIUM.value:
        price = event.premium_price if event.premium_price else base * Decimal("1.5")
    else:
        price = base
    return Decimal(price).quantize(CENTS, rounding=ROUND_HALF_UP)


async def create_booking(
    db: AsyncSession,
    event_locks: KeyedLocks,
    event_id: str,
    seat_ids: Iterable[str],
    session_id: str,
    buyer: Buyer,
    *,
    now: Optional[datetime] = None,
) -> Booking:
    """
    Create a pending booking for seats the session currently holds.

    Raises LockExpiredError if any lock is missing or expired, NotFoundError
    for an unknown event, BookingFailedError on storage failure.
    """
    seat_ids = normalize_seat_ids(seat_ids)
    if not session_id:
        raise ValidationError("Session ID required", field="sessionId")
    if not buyer.email or not buyer.name:
        raise ValidationError("Missing required fields", field="userEmail")

    start = time.perf_counter()
    async with event_locks.hold(event_id):
        now = now or utcnow()
        try:
            async with transaction(db, "create_booking"):
                held = await held_seat_ids(db, event_id, seat_ids, session_id, now=now)
                if len(held) != len(seat_ids):
                    raise LockExpiredError([seat_id for seat_id in seat_ids if seat_id not in held])

                event = await get_event(db, event_id)
                seats = await load_event_seats(db, event, seat_ids)

                # Locks are only granted for unclaimed seats; this keeps the
                # invariant even if a lock row was written out of band
                claimed = await claimed_seat_ids(db, event_id, seat_ids)
                if claimed:
                    raise SeatConflictError([
                        {"seatId": s.id, "rowLabel": s.row_label, "seatNumber": s.seat_number, "reason": "booked"}
                        for s in seats if s.id in claimed
                    ])

                prices = [(seat, resolve_seat_price(event, seat.tier)) for seat in seats]
                total = sum((price for _, price in prices), Decimal("0")).quantize(CENTS)

                booking = Booking(
                    event_id=event_id,
                    user_email=buyer.email,
                    user_name=buyer.name,
                    user_phone=buyer.phone,
                    total_amount=total,
                    status=BookingStatus.PENDING.value,
                )
                booking.seats = [BookingSeat(seat_id=seat.id, price=price) for seat, price in prices]
                db.add(booking)

                await db.execute(
                    delete(SeatLock)
                    .where(SeatLock.event_id == event_id, SeatLock.session_id == session_id)
                    .execution_options(synchronize_session=False)
                )
                await db.flush()
        except LockExpiredError as e:
            record_booking_attempt("lock_expired")
            logger.info("booking_lock_expired", event_id=event_id, session_id=session_id, missing=e.details.get("seatIds"))
            raise
        except InternalFailure as e:
            record_booking_attempt("error")
            raise BookingFailedError() from e
        except BoxOfficeError:
            record_booking_attempt("error")
            raise

    booking_latency.observe(time.perf_counter() - start)
    record_booking_attempt("success")
    logger.info(
        "booking_created",
        booking_id=booking.id,
        event_id=event_id,
        session_id=session_id,
        seats=len(seat_ids),
        total=str(booking.total_amount),
    )
    return booking


async def get_booking(db: AsyncSession, booking_id: str) -> BookingDetail:
    """Booking header with event/venue, seats with snapshot prices, latest payment."""
    booking = await db.get(Booking, booking_id, populate_existing=True)
    if not booking:
        raise NotFoundError("Booking", booking_id)

    event = await get_event(db, booking.event_id)

    seats = (await db.execute(
        select(Seat, BookingSeat.price)
        .join(BookingSeat, BookingSeat.seat_id == Seat.id)
        .where(BookingSeat.booking_id == booking_id)
        .order_by(Seat.row_label, Seat.seat_number)
    )).all()

    payment = (await db.execute(
        select(Payment)
        .where(Payment.booking_id == booking_id)
        .order_by(Payment.created_at.desc())
        .limit(1)
    )).scalar_one_or_none()

    return BookingDetail(
        booking=booking,
        event=event,
        venue=event.venue,
        seats=[(seat, price) for seat, price in seats],
        payment=payment,
    )
