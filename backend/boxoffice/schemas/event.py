"""
Pydantic schemas for event, venue and category listings.
"""

from datetime import datetime
from typing import Optional

from boxoffice.schemas.base import CamelModel


class VenueResponse(CamelModel):
    id: str
    name: str
    address: str
    city: str
    capacity: int
    rows: int
    seats_per_row: int


class EventResponse(CamelModel):
    id: str
    venue_id: str
    name: str
    description: Optional[str] = None
    category: str
    date: datetime
    image_url: Optional[str] = None
    base_price: float
    premium_price: Optional[float] = None
    vip_price: Optional[float] = None
    status: str
    venue_name: str
    city: str
    address: str


class EventSummaryResponse(EventResponse):
    available_seats: int


class EventDetailResponse(EventResponse):
    rows: int
    seats_per_row: int
    capacity: int
