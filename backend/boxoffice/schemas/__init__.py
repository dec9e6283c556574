from boxoffice.schemas.seat import (
    SeatResponse, SeatMapResponse, LockSeatsRequest, LockSeatsResponse,
    UnavailableSeat, ReleaseSeatsRequest, ReleaseSeatsResponse,
)
from boxoffice.schemas.booking import (
    BookingCreate, BookingCreatedResponse, BookedSeatResponse, PaymentSummary, BookingDetailResponse,
)
from boxoffice.schemas.payment import PaymentRequest, PaymentResponse
from boxoffice.schemas.event import VenueResponse, EventResponse, EventSummaryResponse, EventDetailResponse
from boxoffice.schemas.admin import AdminStatsResponse, AdminBookingsResponse

__all__ = [
    "SeatResponse", "SeatMapResponse", "LockSeatsRequest", "LockSeatsResponse",
    "UnavailableSeat", "ReleaseSeatsRequest", "ReleaseSeatsResponse",
    "BookingCreate", "BookingCreatedResponse", "BookedSeatResponse", "PaymentSummary", "BookingDetailResponse",
    "PaymentRequest", "PaymentResponse",
    "VenueResponse", "EventResponse", "EventSummaryResponse", "EventDetailResponse",
    "AdminStatsResponse", "AdminBookingsResponse",
]
