"""
Pydantic schemas for the admin dashboard.
"""

from datetime import datetime

from boxoffice.schemas.base import CamelModel


class CategoryRevenue(CamelModel):
    category: str
    revenue: float
    bookings: int


class RecentBooking(CamelModel):
    id: str
    event_name: str
    category: str
    user_name: str
    user_email: str
    total_amount: float
    created_at: datetime


class EventSales(CamelModel):
    id: str
    name: str
    date: datetime
    category: str
    total_bookings: int
    total_revenue: float
    total_seats: int
    seats_sold: int


class DailyRevenue(CamelModel):
    date: str
    revenue: float


class AdminStatsResponse(CamelModel):
    total_revenue: float
    total_bookings: int
    total_events: int
    upcoming_events: int
    revenue_by_category: list[CategoryRevenue]
    recent_bookings: list[RecentBooking]
    events_sales: list[EventSales]
    daily_revenue: list[DailyRevenue]


class AdminBooking(CamelModel):
    id: str
    event_id: str
    event_name: str
    event_date: datetime
    category: str
    venue_name: str
    user_name: str
    user_email: str
    total_amount: float
    status: str
    seat_count: int
    created_at: datetime


class AdminBookingsResponse(CamelModel):
    bookings: list[AdminBooking]
    total: int
    page: int
    limit: int
