"""
Seat lock manager.

LOCKING STRATEGY: Per-event critical section + unique constraint
=================================================================

Problem:
  Two sessions request overlapping seats for the same event at the same time.
  Both read "no live lock on A1", both write a lock, both believe they hold A1.

Solution:
  Every acquire/release for an event runs inside that event's asyncio.Lock
  (KeyedLocks), and the whole "check availability, drop my old locks, write
  new locks" sequence commits before the lock is released. Other events are
  unaffected and run in parallel.

  A unique constraint on seat_locks(event_id, seat_id) is the storage-level
  safety net: even a bug in the critical section cannot produce two lock rows
  for the same seat.

Rules:
  - A seat is unavailable as `booked` if a pending or confirmed booking of the
    event holds it, or as `locked` if another session has a live lock on it.
  - All-or-nothing: one unavailable seat fails the whole request and nothing
    is written.
  - A session re-locking its own seats is a refresh: its previous locks for
    the event are dropped and every requested seat gets a fresh expiry.
  - No waiting for contended seats. The loser gets a conflict and retries
    with a different selection.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.core.concurrency import KeyedLocks
from boxoffice.core.config import get_settings
from boxoffice.core.exceptions import InternalFailure, NotFoundError, SeatConflictError, ValidationError
from boxoffice.core.logging import get_logger
from boxoffice.core.metrics import expired_locks_purged, record_lock_attempt
from boxoffice.db.base import utcnow
from boxoffice.db.session import transaction
from boxoffice.models import Booking, BookingSeat, Event, EventStatus, Seat, SeatLock, SEAT_HOLDING_STATUSES
from boxoffice.services.event_service import get_event

logger = get_logger(__name__)


@dataclass
class LockGrant:
    event_id: str
    session_id: str
    seat_ids: List[str]
    expires_at: datetime


def normalize_seat_ids(seat_ids: Iterable[str]) -> List[str]:
    """Drop duplicates while keeping request order; reject empty selections."""
    unique = list(dict.fromkeys(seat_ids or []))
    if not unique or any(not seat_id for seat_id in unique):
        raise ValidationError("No seats specified", field="seatIds")
    return unique


async def purge_expired_locks(db: AsyncSession, *, now: Optional[datetime] = None) -> int:
    """Delete every lock whose expiry is not in the future. Returns rows removed."""
    now = now or utcnow()
    async with transaction(db, "purge_expired_locks"):
        result = await db.execute(
            delete(SeatLock)
            .where(SeatLock.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
    purged = result.rowcount or 0
    if purged:
        expired_locks_purged.inc(purged)
        logger.info("expired_locks_purged", count=purged)
    return purged


async def load_event_seats(db: AsyncSession, event: Event, seat_ids: List[str]) -> List[Seat]:
    """Load the requested seats, all of which must belong to the event's venue."""
    result = await db.execute(
        select(Seat).where(Seat.id.in_(seat_ids), Seat.venue_id == event.venue_id)
    )
    seats = {seat.id: seat for seat in result.scalars()}
    missing = [seat_id for seat_id in seat_ids if seat_id not in seats]
    if missing:
        raise NotFoundError("Seat", missing)
    return [seats[seat_id] for seat_id in seat_ids]


async def claimed_seat_ids(db: AsyncSession, event_id: str, seat_ids: List[str]) -> Set[str]:
    """Seats of this event already attached to a pending or confirmed booking."""
    result = await db.execute(
        select(BookingSeat.seat_id)
        .join(Booking, Booking.id == BookingSeat.booking_id)
        .where(
            Booking.event_id == event_id,
            Booking.status.in_(SEAT_HOLDING_STATUSES),
            BookingSeat.seat_id.in_(seat_ids),
        )
    )
    return set(result.scalars())


async def held_seat_ids(
    db: AsyncSession,
    event_id: str,
    seat_ids: List[str],
    session_id: str,
    *,
    now: Optional[datetime] = None,
) -> Set[str]:
    now = now or utcnow()
    result = await db.execute(
        select(SeatLock.seat_id).where(
            SeatLock.event_id == event_id,
            SeatLock.session_id == session_id,
            SeatLock.seat_id.in_(seat_ids),
            SeatLock.expires_at > now,
        )
    )
    return set(result.scalars())


async def seats_held(
    db: AsyncSession,
    event_id: str,
    seat_ids: Iterable[str],
    session_id: str,
    *,
    now: Optional[datetime] = None,
) -> bool:
    """True only if every seat has a live lock owned by exactly this session."""
    seat_ids = list(dict.fromkeys(seat_ids or []))
    if not seat_ids or not session_id:
        return False
    held = await held_seat_ids(db, event_id, seat_ids, session_id, now=now)
    return len(held) == len(seat_ids)


async def _unavailable_seats(
    db: AsyncSession,
    event_id: str,
    seats: List[Seat],
    session_id: str,
    now: datetime,
) -> List[dict]:
    seat_ids = [seat.id for seat in seats]
    booked = await claimed_seat_ids(db, event_id, seat_ids)

    result = await db.execute(
        select(SeatLock.seat_id).where(
            SeatLock.event_id == event_id,
            SeatLock.seat_id.in_(seat_ids),
            SeatLock.session_id != session_id,
            SeatLock.expires_at > now,
        )
    )
    locked_by_others = set(result.scalars())

    unavailable = []
    for seat in sorted(seats, key=lambda s: (s.row_label, s.seat_number)):
        if seat.id in booked:
            reason = "booked"
        elif seat.id in locked_by_others:
            reason = "locked"
        else:
            continue
        unavailable.append({
            "seatId": seat.id,
            "rowLabel": seat.row_label,
            "seatNumber": seat.seat_number,
            "reason": reason,
        })
    return unavailable


async def acquire_seats(
    db: AsyncSession,
    event_locks: KeyedLocks,
    event_id: str,
    seat_ids: Iterable[str],
    session_id: str,
    *,
    now: Optional[datetime] = None,
    lock_duration: Optional[timedelta] = None,
) -> LockGrant:
    """
    Lock every requested seat for the session, or none of them.

    Raises SeatConflictError listing each unavailable seat and why.
    """
    seat_ids = normalize_seat_ids(seat_ids)
    if not session_id:
        raise ValidationError("Session ID required", field="sessionId")
    if lock_duration is None:
        lock_duration = timedelta(minutes=get_settings().LOCK_DURATION_MINUTES)

    async with event_locks.hold(event_id):
        now = now or utcnow()
        await purge_expired_locks(db, now=now)
        expires_at = now + lock_duration

        try:
            async with transaction(db, "acquire_seats"):
                event = await get_event(db, event_id)
                if event.status != EventStatus.ACTIVE.value:
                    raise ValidationError("Event is not open for booking", field="eventId")

                seats = await load_event_seats(db, event, seat_ids)
                unavailable = await _unavailable_seats(db, event_id, seats, session_id, now)
                if unavailable:
                    raise SeatConflictError(unavailable)

                # Drop-then-grant; both halves commit together under the event lock
                await db.execute(
                    delete(SeatLock)
                    .where(SeatLock.event_id == event_id, SeatLock.session_id == session_id)
                    .execution_options(synchronize_session=False)
                )
                db.add_all([
                    SeatLock(
                        event_id=event_id,
                        seat_id=seat_id,
                        session_id=session_id,
                        locked_at=now,
                        expires_at=expires_at,
                    )
                    for seat_id in seat_ids
                ])
                await db.flush()
        except SeatConflictError as e:
            record_lock_attempt("conflict")
            logger.info(
                "seat_lock_conflict",
                event_id=event_id,
                session_id=session_id,
                unavailable=[seat["seatId"] for seat in e.unavailable],
            )
            raise
        except InternalFailure:
            record_lock_attempt("error")
            raise

    record_lock_attempt("granted")
    logger.info(
        "seats_locked",
        event_id=event_id,
        session_id=session_id,
        seats=len(seat_ids),
        expires_at=expires_at.isoformat(),
    )
    return LockGrant(event_id=event_id, session_id=session_id, seat_ids=seat_ids, expires_at=expires_at)


async def release_seats(
    db: AsyncSession,
    event_locks: KeyedLocks,
    event_id: str,
    session_id: str,
) -> int:
    """Delete all of the session's locks for the event. Idempotent."""
    if not session_id:
        return 0

    async with event_locks.hold(event_id):
        async with transaction(db, "release_seats"):
            result = await db.execute(
                delete(SeatLock)
                .where(SeatLock.event_id == event_id, SeatLock.session_id == session_id)
                .execution_options(synchronize_session=False)
            )

    released = result.rowcount or 0
    logger.info("seats_released", event_id=event_id, session_id=session_id, released=released)
    return released
