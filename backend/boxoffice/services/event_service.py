"""
Event, venue and category queries.

These are read-only projections used by listing pages. Seat counts here are
informational (confirmed sales only); the seat map and the lock manager are
the authority on what can actually be reserved.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.core.exceptions import NotFoundError
from boxoffice.core.logging import get_logger
from boxoffice.models import Booking, BookingSeat, BookingStatus, Event, EventStatus, Seat, Venue

logger = get_logger(__name__)


async def get_event(db: AsyncSession, event_id: str) -> Event:
    """Get a single event (with its venue) by ID."""
    event = await db.get(Event, event_id)
    if not event:
        raise NotFoundError("Event", event_id)
    return event


def _available_seats_column():
    total = (
        select(func.count(Seat.id))
        .where(Seat.venue_id == Event.venue_id)
        .correlate(Event)
        .scalar_subquery()
    )
    sold = (
        select(func.count(BookingSeat.id))
        .join(Booking, Booking.id == BookingSeat.booking_id)
        .where(Booking.event_id == Event.id, Booking.status == BookingStatus.CONFIRMED.value)
        .correlate(Event)
        .scalar_subquery()
    )
    return (total - sold).label("available_seats")


async def list_events(
    db: AsyncSession,
    category: Optional[str] = None,
    search: Optional[str] = None,
    upcoming_only: bool = False,
) -> list[tuple[Event, int]]:
    """
    List active events ordered by date, each with its unsold seat count.
    Uses the ix_events_status and ix_events_date indexes.
    """
    query = (
        select(Event, _available_seats_column())
        .join(Venue, Venue.id == Event.venue_id)
        .where(Event.status == EventStatus.ACTIVE.value)
    )

    if category:
        query = query.where(Event.category == category)

    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(Event.name.ilike(pattern), Event.description.ilike(pattern), Venue.city.ilike(pattern))
        )

    if upcoming_only:
        query = query.where(Event.date > datetime.now(timezone.utc))

    result = await db.execute(query.order_by(Event.date.asc()))
    return [(event, available) for event, available in result.unique().all()]


async def list_categories(db: AsyncSession) -> list[str]:
    result = await db.execute(
        select(Event.category)
        .where(Event.status == EventStatus.ACTIVE.value)
        .distinct()
        .order_by(Event.category)
    )
    return list(result.scalars().all())


async def list_venues(db: AsyncSession) -> list[Venue]:
    result = await db.execute(select(Venue).order_by(Venue.name))
    return list(result.scalars().all())
