"""
Event, category and venue endpoints with Redis caching on the listing.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.db.session import get_db
from boxoffice.models import Event
from boxoffice.schemas.event import EventDetailResponse, EventSummaryResponse, VenueResponse
from boxoffice.services.event_service import get_event, list_categories, list_events, list_venues
from boxoffice.services.cache_service import get_cached_events, set_cached_events
from boxoffice.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Events"])


def _optional_price(value) -> Optional[float]:
    return float(value) if value is not None else None


def _event_fields(event: Event) -> dict:
    venue = event.venue
    return {
        "id": event.id,
        "venue_id": event.venue_id,
        "name": event.name,
        "description": event.description,
        "category": event.category,
        "date": event.date,
        "image_url": event.image_url,
        "base_price": float(event.base_price),
        "premium_price": _optional_price(event.premium_price),
        "vip_price": _optional_price(event.vip_price),
        "status": event.status,
        "venue_name": venue.name,
        "city": venue.city,
        "address": venue.address,
    }


@router.get("/events", response_model=list[EventSummaryResponse])
async def list_events_endpoint(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    upcoming: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """
    Active events ordered by date, each with its unsold seat count.
    Results are cached in Redis; confirmed payments invalidate the cache.
    """
    cached = await get_cached_events(category, search, upcoming)
    if cached is not None:
        logger.info("events_list_cache_hit", category=category, search=search)
        return [EventSummaryResponse(**item) for item in cached]

    rows = await list_events(db, category=category, search=search, upcoming_only=upcoming)
    events = [EventSummaryResponse(**_event_fields(event), available_seats=available) for event, available in rows]

    await set_cached_events(category, search, upcoming, [e.model_dump() for e in events])
    return events


@router.get("/events/{event_id}", response_model=EventDetailResponse)
async def get_event_endpoint(
    event_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Single event with its venue layout. Not cached."""
    event = await get_event(db, event_id)
    venue = event.venue
    return EventDetailResponse(
        **_event_fields(event),
        rows=venue.rows,
        seats_per_row=venue.seats_per_row,
        capacity=venue.capacity,
    )


@router.get("/categories", response_model=list[str])
async def list_categories_endpoint(db: AsyncSession = Depends(get_db)):
    return await list_categories(db)


@router.get("/venues", response_model=list[VenueResponse])
async def list_venues_endpoint(db: AsyncSession = Depends(get_db)):
    venues = await list_venues(db)
    return [VenueResponse.model_validate(v) for v in venues]
