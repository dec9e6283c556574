"""
Booking endpoints: turn held seats into a pending booking, read it back.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.api.deps import get_event_locks
from boxoffice.core.concurrency import KeyedLocks
from boxoffice.db.session import get_db
from boxoffice.schemas.booking import (
    BookedSeatResponse,
    BookingCreate,
    BookingCreatedResponse,
    BookingDetailResponse,
    PaymentSummary,
)
from boxoffice.services.booking_service import Buyer, create_booking, get_booking

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    booking_data: BookingCreate,
    db: AsyncSession = Depends(get_db),
    event_locks: KeyedLocks = Depends(get_event_locks),
):
    """
    Create a pending booking from the session's locked seats.

    409 if any lock lapsed (the client restarts seat selection), 404 for an
    unknown event. Seat prices are fixed at this point.
    """
    buyer = Buyer(
        email=booking_data.user_email,
        name=booking_data.user_name,
        phone=booking_data.user_phone,
    )
    booking = await create_booking(
        db,
        event_locks,
        booking_data.event_id,
        booking_data.seat_ids,
        booking_data.session_id,
        buyer,
    )
    return BookingCreatedResponse(
        booking_id=booking.id,
        total_amount=float(booking.total_amount),
        seats=len(booking.seats),
        status=booking.status,
    )


@router.get("/{booking_id}", response_model=BookingDetailResponse)
async def get_booking_endpoint(
    booking_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Booking header, seats with the prices charged, and the latest payment."""
    detail = await get_booking(db, booking_id)
    booking, event, venue = detail.booking, detail.event, detail.venue
    payment = None
    if detail.payment is not None:
        p = detail.payment
        payment = PaymentSummary(
            id=p.id,
            amount=float(p.amount),
            method=p.method,
            status=p.status,
            transaction_id=p.transaction_id,
            failure_reason=p.failure_reason,
            created_at=p.created_at,
            completed_at=p.completed_at,
        )
    return BookingDetailResponse(
        id=booking.id,
        event_id=event.id,
        event_name=event.name,
        event_date=event.date,
        category=event.category,
        venue_name=venue.name,
        address=venue.address,
        city=venue.city,
        user_email=booking.user_email,
        user_name=booking.user_name,
        user_phone=booking.user_phone,
        total_amount=float(booking.total_amount),
        status=booking.status,
        voucher=booking.voucher,
        created_at=booking.created_at,
        seats=[
            BookedSeatResponse(
                id=seat.id,
                row_label=seat.row_label,
                seat_number=seat.seat_number,
                tier=seat.tier,
                price=float(price),
            )
            for seat, price in detail.seats
        ],
        payment=payment,
    )
