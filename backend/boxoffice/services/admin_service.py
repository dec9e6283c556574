"""
Admin dashboard queries: revenue, sales per event and booking search.
Read-only; nothing here takes a seat or event lock.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.models import (
    Booking,
    BookingSeat,
    BookingStatus,
    Event,
    EventStatus,
    Payment,
    PaymentStatus,
    Seat,
    Venue,
)

CONFIRMED = BookingStatus.CONFIRMED.value
COMPLETED = PaymentStatus.COMPLETED.value
ACTIVE = EventStatus.ACTIVE.value


def _money(value) -> float:
    return float(value or Decimal("0"))


async def dashboard_stats(db: AsyncSession, *, recent_limit: int = 10) -> dict:
    now = datetime.now(timezone.utc)

    total_revenue = (await db.execute(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(Payment.status == COMPLETED)
    )).scalar()
    total_bookings = (await db.execute(
        select(func.count(Booking.id)).where(Booking.status == CONFIRMED)
    )).scalar()
    total_events = (await db.execute(
        select(func.count(Event.id)).where(Event.status == ACTIVE)
    )).scalar()
    upcoming_events = (await db.execute(
        select(func.count(Event.id)).where(Event.status == ACTIVE, Event.date > now)
    )).scalar()

    by_category = (await db.execute(
        select(
            Event.category,
            func.sum(Payment.amount).label("revenue"),
            func.count(func.distinct(Booking.id)).label("bookings"),
        )
        .select_from(Payment)
        .join(Booking, Booking.id == Payment.booking_id)
        .join(Event, Event.id == Booking.event_id)
        .where(Payment.status == COMPLETED)
        .group_by(Event.category)
        .order_by(Event.category)
    )).all()

    recent = (await db.execute(
        select(Booking, Event.name, Event.category)
        .join(Event, Event.id == Booking.event_id)
        .where(Booking.status == CONFIRMED)
        .order_by(Booking.created_at.desc())
        .limit(recent_limit)
    )).all()

    total_seats = (
        select(func.count(Seat.id)).where(Seat.venue_id == Event.venue_id).correlate(Event).scalar_subquery()
    )
    seats_sold = (
        select(func.count(BookingSeat.id))
        .join(Booking, Booking.id == BookingSeat.booking_id)
        .where(Booking.event_id == Event.id, Booking.status == CONFIRMED)
        .correlate(Event)
        .scalar_subquery()
    )
    bookings_count = (
        select(func.count(Booking.id))
        .where(Booking.event_id == Event.id, Booking.status == CONFIRMED)
        .correlate(Event)
        .scalar_subquery()
    )
    revenue = (
        select(func.coalesce(func.sum(Payment.amount), 0))
        .join(Booking, Booking.id == Payment.booking_id)
        .where(Booking.event_id == Event.id, Payment.status == COMPLETED)
        .correlate(Event)
        .scalar_subquery()
    )
    sales = (await db.execute(
        select(
            Event.id, Event.name, Event.date, Event.category,
            bookings_count.label("total_bookings"),
            revenue.label("total_revenue"),
            total_seats.label("total_seats"),
            seats_sold.label("seats_sold"),
        )
        .where(Event.status == ACTIVE)
        .order_by(Event.date.asc())
    )).all()

    day = func.date(Payment.completed_at)
    daily = (await db.execute(
        select(day.label("date"), func.sum(Payment.amount).label("revenue"))
        .where(Payment.status == COMPLETED, Payment.completed_at >= now - timedelta(days=30))
        .group_by(day)
        .order_by(day)
    )).all()

    return {
        "total_revenue": _money(total_revenue),
        "total_bookings": total_bookings,
        "total_events": total_events,
        "upcoming_events": upcoming_events,
        "revenue_by_category": [
            {"category": row.category, "revenue": _money(row.revenue), "bookings": row.bookings}
            for row in by_category
        ],
        "recent_bookings": [
            {
                "id": booking.id,
                "event_name": event_name,
                "category": category,
                "user_name": booking.user_name,
                "user_email": booking.user_email,
                "total_amount": _money(booking.total_amount),
                "created_at": booking.created_at,
            }
            for booking, event_name, category in recent
        ],
        "events_sales": [
            {
                "id": row.id,
                "name": row.name,
                "date": row.date,
                "category": row.category,
                "total_bookings": row.total_bookings,
                "total_revenue": _money(row.total_revenue),
                "total_seats": row.total_seats,
                "seats_sold": row.seats_sold,
            }
            for row in sales
        ],
        "daily_revenue": [{"date": str(row.date), "revenue": _money(row.revenue)} for row in daily],
    }


async def search_bookings(
    db: AsyncSession,
    status: Optional[str] = None,
    event_id: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[dict], int]:
    """Bookings newest first, with event/venue names and seat counts."""
    seat_count = (
        select(func.count(BookingSeat.id))
        .where(BookingSeat.booking_id == Booking.id)
        .correlate(Booking)
        .scalar_subquery()
    )
    query = (
        select(Booking, Event.name, Event.date, Event.category, Venue.name, seat_count.label("seat_count"))
        .join(Event, Event.id == Booking.event_id)
        .join(Venue, Venue.id == Event.venue_id)
    )
    count_query = select(func.count(Booking.id))

    if status:
        query = query.where(Booking.status == status)
        count_query = count_query.where(Booking.status == status)
    if event_id:
        query = query.where(Booking.event_id == event_id)
        count_query = count_query.where(Booking.event_id == event_id)

    total = (await db.execute(count_query)).scalar()
    rows = (await db.execute(
        query.order_by(Booking.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )).all()

    bookings = [
        {
            "id": booking.id,
            "event_id": booking.event_id,
            "event_name": event_name,
            "event_date": event_date,
            "category": category,
            "venue_name": venue_name,
            "user_name": booking.user_name,
            "user_email": booking.user_email,
            "total_amount": _money(booking.total_amount),
            "status": booking.status,
            "seat_count": count,
            "created_at": booking.created_at,
        }
        for booking, event_name, event_date, category, venue_name, count in rows
    ]
    return bookings, total
