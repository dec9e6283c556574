"""
Pydantic schemas for seat maps and seat locks.
"""

from datetime import datetime
from typing import Optional
from pydantic import Field

from boxoffice.schemas.base import CamelModel


class SeatResponse(CamelModel):
    id: str
    row_label: str
    seat_number: int
    tier: str
    status: str  # available, locked, booked
    held_by_you: bool = False
    lock_expires: Optional[datetime] = None


class SeatMapResponse(CamelModel):
    event_id: str
    seats: list[SeatResponse]
    seats_by_row: dict[str, list[SeatResponse]]
    summary: dict[str, int]


class LockSeatsRequest(CamelModel):
    seat_ids: list[str] = Field(..., min_length=1, max_length=50)
    session_id: str = Field(..., min_length=1, max_length=255)


class LockSeatsResponse(CamelModel):
    success: bool = True
    expires_at: datetime
    locked_seats: int


class UnavailableSeat(CamelModel):
    seat_id: str
    row_label: str
    seat_number: int
    reason: str  # booked, locked


class ReleaseSeatsRequest(CamelModel):
    session_id: str = Field(..., min_length=1, max_length=255)


class ReleaseSeatsResponse(CamelModel):
    success: bool = True
    released: int = 0
