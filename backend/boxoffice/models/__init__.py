from boxoffice.models.venue import Venue
from boxoffice.models.seat import Seat, SeatTier
from boxoffice.models.event import Event, EventStatus
from boxoffice.models.seat_lock import SeatLock
from boxoffice.models.booking import Booking, BookingSeat, BookingStatus, SEAT_HOLDING_STATUSES
from boxoffice.models.payment import Payment, PaymentStatus

__all__ = [
    "Venue", "Seat", "SeatTier",
    "Event", "EventStatus",
    "SeatLock",
    "Booking", "BookingSeat", "BookingStatus", "SEAT_HOLDING_STATUSES",
    "Payment", "PaymentStatus",
]
