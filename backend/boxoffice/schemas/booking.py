"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import EmailStr, Field

from boxoffice.schemas.base import CamelModel


class BookingCreate(CamelModel):
    event_id: str = Field(..., min_length=1)
    seat_ids: list[str] = Field(..., min_length=1, max_length=50)
    session_id: str = Field(..., min_length=1, max_length=255)
    user_email: EmailStr
    user_name: str = Field(..., min_length=1, max_length=255)
    user_phone: Optional[str] = Field(None, max_length=50)


class BookingCreatedResponse(CamelModel):
    booking_id: str
    total_amount: float
    seats: int
    status: str


class BookedSeatResponse(CamelModel):
    id: str
    row_label: str
    seat_number: int
    tier: str
    price: float


class PaymentSummary(CamelModel):
    id: str
    amount: float
    method: str
    status: str
    transaction_id: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class BookingDetailResponse(CamelModel):
    id: str
    event_id: str
    event_name: str
    event_date: datetime
    category: str
    venue_name: str
    address: str
    city: str
    user_email: str
    user_name: str
    user_phone: Optional[str] = None
    total_amount: float
    status: str
    voucher: Optional[str] = None
    created_at: datetime
    seats: list[BookedSeatResponse]
    payment: Optional[PaymentSummary] = None
