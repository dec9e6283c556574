"""
Tests for the expiry reaper and the stale pending-booking policy.
"""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import func, select, update

from boxoffice.core.concurrency import KeyedLocks
from boxoffice.core.exceptions import BookingAbandonedError
from boxoffice.db.base import utcnow
from boxoffice.models import SeatLock
from boxoffice.services.booking_service import Buyer, create_booking, get_booking
from boxoffice.services.lock_service import acquire_seats
from boxoffice.services.payment_service import settle_payment
from boxoffice.services.reaper import ExpiryReaper

BUYER = Buyer(email="late@example.com", name="Late Buyer")


@pytest.mark.asyncio
async def test_tick_purges_expired_locks(database, db_session, event_locks, booking_locks, test_event, seats):
    now = utcnow()
    await acquire_seats(
        db_session, event_locks, test_event.id, [seats["A1"]], "sess-1",
        now=now, lock_duration=timedelta(minutes=1),
    )
    await acquire_seats(
        db_session, event_locks, test_event.id, [seats["A2"]], "sess-2",
        now=now, lock_duration=timedelta(minutes=30),
    )

    reaper = ExpiryReaper(database, booking_locks)
    result = await reaper.run_once(now=now + timedelta(minutes=5))

    assert result == {"purged_locks": 1, "abandoned_bookings": 0}
    remaining = (await db_session.execute(select(SeatLock.session_id))).scalars().all()
    assert remaining == ["sess-2"]


@pytest.mark.asyncio
async def test_pending_bookings_kept_without_ttl(database, db_session, event_locks, booking_locks, test_event, seats):
    await acquire_seats(db_session, event_locks, test_event.id, [seats["B1"]], "sess-1")
    booking = await create_booking(db_session, event_locks, test_event.id, [seats["B1"]], "sess-1", BUYER)

    reaper = ExpiryReaper(database, booking_locks)
    await reaper.run_once(now=utcnow() + timedelta(days=2))

    assert (await get_booking(db_session, booking.id)).booking.status == "pending"


@pytest.mark.asyncio
async def test_stale_pending_booking_is_abandoned_and_seats_freed(
    database, db_session, event_locks, booking_locks, gateway, test_event, seats
):
    await acquire_seats(db_session, event_locks, test_event.id, [seats["B2"]], "sess-1")
    booking = await create_booking(db_session, event_locks, test_event.id, [seats["B2"]], "sess-1", BUYER)

    reaper = ExpiryReaper(database, booking_locks, pending_booking_ttl=timedelta(minutes=15))
    later = utcnow() + timedelta(minutes=16)
    result = await reaper.run_once(now=later)

    assert result["abandoned_bookings"] == 1
    assert (await get_booking(db_session, booking.id)).booking.status == "abandoned"

    grant = await acquire_seats(db_session, event_locks, test_event.id, [seats["B2"]], "sess-2", now=later)
    assert grant.seat_ids == [seats["B2"]]

    with pytest.raises(BookingAbandonedError):
        await settle_payment(db_session, booking_locks, gateway, booking.id, "card")


@pytest.mark.asyncio
async def test_confirmed_bookings_are_never_abandoned(
    database, db_session, event_locks, booking_locks, gateway, test_event, seats
):
    await acquire_seats(db_session, event_locks, test_event.id, [seats["B3"]], "sess-1")
    booking = await create_booking(db_session, event_locks, test_event.id, [seats["B3"]], "sess-1", BUYER)
    await settle_payment(db_session, booking_locks, gateway, booking.id, "card")

    reaper = ExpiryReaper(database, booking_locks, pending_booking_ttl=timedelta(minutes=15))
    result = await reaper.run_once(now=utcnow() + timedelta(hours=1))

    assert result["abandoned_bookings"] == 0
    assert (await get_booking(db_session, booking.id)).booking.status == "confirmed"


@pytest.mark.asyncio
async def test_background_loop_starts_and_stops(database, db_session, event_locks, test_event, seats):
    await acquire_seats(
        db_session, event_locks, test_event.id, [seats["C1"]], "sess-1",
        now=utcnow() - timedelta(minutes=20), lock_duration=timedelta(minutes=10),
    )

    reaper = ExpiryReaper(database, KeyedLocks(), interval_seconds=0.01)
    reaper.start()
    assert reaper.running
    await asyncio.sleep(0.2)
    await reaper.stop()

    assert not reaper.running
    remaining = (await db_session.execute(select(func.count(SeatLock.id)))).scalar()
    assert remaining == 0


@pytest.mark.asyncio
async def test_failing_tick_does_not_stop_the_loop(database, booking_locks, monkeypatch):
    calls = []

    async def flaky_run_once(*, now=None):
        calls.append(now)
        if len(calls) == 1:
            raise RuntimeError("database briefly unreachable")
        return {"purged_locks": 0, "abandoned_bookings": 0}

    reaper = ExpiryReaper(database, booking_locks, interval_seconds=0.01)
    monkeypatch.setattr(reaper, "run_once", flaky_run_once)
    reaper.start()
    await asyncio.sleep(0.1)
    assert reaper.running
    await reaper.stop()

    assert len(calls) >= 2


@pytest.mark.asyncio
async def test_lapsed_lock_is_reclaimed_after_a_tick(client, database, test_event, seats):
    """Lock [A1, A2] as X, Y is refused A1, the lock lapses, a tick runs, Y gets A1."""
    lock_url = f"/api/events/{test_event.id}/seats/lock"

    first = await client.post(lock_url, json={"seatIds": [seats["A1"], seats["A2"]], "sessionId": "X"})
    assert first.status_code == 200
    assert first.json()["lockedSeats"] == 2

    refused = await client.post(lock_url, json={"seatIds": [seats["A1"]], "sessionId": "Y"})
    assert refused.status_code == 409
    assert refused.json()["unavailable"][0]["seatId"] == seats["A1"]
    assert refused.json()["unavailable"][0]["reason"] == "locked"

    # Lapse X's locks without waiting ten minutes
    async with database.session() as db:
        await db.execute(
            update(SeatLock)
            .where(SeatLock.session_id == "X")
            .values(expires_at=utcnow() - timedelta(seconds=1))
        )
        await db.commit()
    result = await ExpiryReaper(database, KeyedLocks()).run_once()
    assert result["purged_locks"] == 2

    granted = await client.post(lock_url, json={"seatIds": [seats["A1"]], "sessionId": "Y"})
    assert granted.status_code == 200
