"""
Tests for booking creation including lock validation and concurrency scenarios.
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from boxoffice.core.concurrency import KeyedLocks
from boxoffice.core.exceptions import LockExpiredError, NotFoundError, SeatConflictError
from boxoffice.db.base import utcnow
from boxoffice.models import Booking, BookingSeat, SeatLock
from boxoffice.services.booking_service import Buyer, create_booking, get_booking, resolve_seat_price
from boxoffice.services.lock_service import acquire_seats


BUYER = Buyer(email="buyer@example.com", name="Test Buyer", phone="555-0100")


@pytest.mark.asyncio
async def test_booking_consumes_locks_and_snapshots_prices(db_session, event_locks, test_event, seats):
    picked = [seats["A1"], seats["C1"], seats["F1"]]
    await acquire_seats(db_session, event_locks, test_event.id, picked, "sess-1")

    booking = await create_booking(db_session, event_locks, test_event.id, picked, "sess-1", BUYER)

    assert booking.status == "pending"
    assert booking.total_amount == Decimal("250.00")  # 120 vip + 80 premium + 50 standard
    prices = {bs.seat_id: bs.price for bs in booking.seats}
    assert prices == {seats["A1"]: Decimal("120.00"), seats["C1"]: Decimal("80.00"), seats["F1"]: Decimal("50.00")}

    remaining = (await db_session.execute(
        select(func.count(SeatLock.id)).where(SeatLock.session_id == "sess-1")
    )).scalar()
    assert remaining == 0


@pytest.mark.asyncio
async def test_booking_without_locks_is_rejected(db_session, event_locks, test_event, seats):
    with pytest.raises(LockExpiredError) as exc_info:
        await create_booking(db_session, event_locks, test_event.id, [seats["A1"]], "sess-1", BUYER)
    assert exc_info.value.details["seatIds"] == [seats["A1"]]


@pytest.mark.asyncio
async def test_booking_with_partial_locks_writes_nothing(db_session, event_locks, test_event, seats):
    await acquire_seats(db_session, event_locks, test_event.id, [seats["A1"]], "sess-1")

    with pytest.raises(LockExpiredError):
        await create_booking(db_session, event_locks, test_event.id, [seats["A1"], seats["A2"]], "sess-1", BUYER)

    bookings = (await db_session.execute(select(func.count(Booking.id)))).scalar()
    assert bookings == 0
    held = (await db_session.execute(
        select(func.count(SeatLock.id)).where(SeatLock.session_id == "sess-1")
    )).scalar()
    assert held == 1


@pytest.mark.asyncio
async def test_booking_with_expired_lock_is_rejected(db_session, event_locks, test_event, seats):
    now = utcnow()
    await acquire_seats(
        db_session, event_locks, test_event.id, [seats["B1"]], "sess-1",
        now=now, lock_duration=timedelta(minutes=10),
    )
    with pytest.raises(LockExpiredError):
        await create_booking(
            db_session, event_locks, test_event.id, [seats["B1"]], "sess-1", BUYER,
            now=now + timedelta(minutes=10),
        )


@pytest.mark.asyncio
async def test_booking_with_another_sessions_lock_is_rejected(db_session, event_locks, test_event, seats):
    await acquire_seats(db_session, event_locks, test_event.id, [seats["B2"]], "sess-1")
    with pytest.raises(LockExpiredError):
        await create_booking(db_session, event_locks, test_event.id, [seats["B2"]], "sess-2", BUYER)


@pytest.mark.asyncio
async def test_pending_booking_blocks_new_locks(db_session, event_locks, test_event, seats):
    await acquire_seats(db_session, event_locks, test_event.id, [seats["D5"]], "sess-1")
    await create_booking(db_session, event_locks, test_event.id, [seats["D5"]], "sess-1", BUYER)

    with pytest.raises(SeatConflictError) as exc_info:
        await acquire_seats(db_session, event_locks, test_event.id, [seats["D5"]], "sess-2")
    assert exc_info.value.unavailable[0]["reason"] == "booked"


@pytest.mark.asyncio
async def test_same_locks_cannot_be_booked_twice(db_session, event_locks, test_event, seats):
    await acquire_seats(db_session, event_locks, test_event.id, [seats["D6"]], "sess-1")
    await create_booking(db_session, event_locks, test_event.id, [seats["D6"]], "sess-1", BUYER)

    with pytest.raises(LockExpiredError):
        await create_booking(db_session, event_locks, test_event.id, [seats["D6"]], "sess-1", BUYER)


@pytest.mark.asyncio
async def test_concurrent_bookings_from_one_session(database, test_event, seats):
    """Double-submitted booking form: exactly one booking is created."""
    event_locks = KeyedLocks()
    picked = [seats["E1"], seats["E2"]]
    async with database.session() as db:
        await acquire_seats(db, event_locks, test_event.id, picked, "sess-1")

    async def attempt():
        async with database.session() as db:
            try:
                return await create_booking(db, event_locks, test_event.id, picked, "sess-1", BUYER)
            except LockExpiredError:
                return None

    results = await asyncio.gather(*(attempt() for _ in range(5)))
    assert len([r for r in results if r is not None]) == 1

    async with database.session() as db:
        booked_seats = (await db.execute(select(func.count(BookingSeat.id)))).scalar()
    assert booked_seats == 2


@pytest.mark.asyncio
async def test_get_booking_detail(db_session, event_locks, test_event, seats):
    picked = [seats["C2"], seats["A2"]]
    await acquire_seats(db_session, event_locks, test_event.id, picked, "sess-1")
    booking = await create_booking(db_session, event_locks, test_event.id, picked, "sess-1", BUYER)

    detail = await get_booking(db_session, booking.id)
    assert detail.booking.id == booking.id
    assert detail.event.id == test_event.id
    assert detail.venue.id == test_event.venue_id
    assert [(seat.row_label, seat.seat_number) for seat, _ in detail.seats] == [("A", 2), ("C", 2)]
    assert detail.payment is None


@pytest.mark.asyncio
async def test_get_unknown_booking(db_session):
    with pytest.raises(NotFoundError):
        await get_booking(db_session, "missing")


@pytest.mark.asyncio
async def test_tier_prices_derive_from_base_when_unset(event_factory):
    event = await event_factory(name="Derived", base_price="40.00")
    assert resolve_seat_price(event, "standard") == Decimal("40.00")
    assert resolve_seat_price(event, "premium") == Decimal("60.00")
    assert resolve_seat_price(event, "vip") == Decimal("80.00")


@pytest.mark.asyncio
async def test_create_booking_endpoint(client: AsyncClient, test_event, seats):
    await client.post(
        f"/api/events/{test_event.id}/seats/lock",
        json={"seatIds": [seats["F1"], seats["F2"]], "sessionId": "web-1"},
    )
    response = await client.post(
        "/api/bookings",
        json={
            "eventId": test_event.id,
            "seatIds": [seats["F1"], seats["F2"]],
            "sessionId": "web-1",
            "userEmail": "buyer@example.com",
            "userName": "Test Buyer",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["seats"] == 2
    assert data["totalAmount"] == 100.0

    detail = await client.get(f"/api/bookings/{data['bookingId']}")
    assert detail.status_code == 200
    body = detail.json()
    assert body["status"] == "pending"
    assert body["eventName"] == "Test Concert"
    assert [s["price"] for s in body["seats"]] == [50.0, 50.0]
    assert body["payment"] is None
    assert body["voucher"] is None


@pytest.mark.asyncio
async def test_create_booking_endpoint_lock_expired(client: AsyncClient, test_event, seats):
    response = await client.post(
        "/api/bookings",
        json={
            "eventId": test_event.id,
            "seatIds": [seats["F3"]],
            "sessionId": "web-1",
            "userEmail": "buyer@example.com",
            "userName": "Test Buyer",
        },
    )
    assert response.status_code == 409
    assert response.json()["code"] == "LOCK_EXPIRED"


@pytest.mark.asyncio
async def test_create_booking_endpoint_invalid_email(client: AsyncClient, test_event, seats):
    response = await client.post(
        "/api/bookings",
        json={
            "eventId": test_event.id,
            "seatIds": [seats["F3"]],
            "sessionId": "web-1",
            "userEmail": "not-an-email",
            "userName": "Test Buyer",
        },
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_get_booking_endpoint_not_found(client: AsyncClient):
    response = await client.get("/api/bookings/missing")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_price_change_does_not_touch_existing_booking(db_session, event_locks, test_event, seats):
    await acquire_seats(db_session, event_locks, test_event.id, [seats["A7"]], "sess-1")
    booking = await create_booking(db_session, event_locks, test_event.id, [seats["A7"]], "sess-1", BUYER)

    test_event.vip_price = Decimal("999.00")
    test_event.base_price = Decimal("1.00")
    await db_session.commit()

    detail = await get_booking(db_session, booking.id)
    assert [price for _, price in detail.seats] == [Decimal("120.00")]
    assert detail.booking.total_amount == Decimal("120.00")
