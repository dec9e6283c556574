"""
Booking and BookingSeat models.

Key design decisions:
- A booking exists in `pending` as soon as the buyer's locks are consumed;
  its booking_seats rows are what keep those seats out of new locks while
  payment is outstanding
- booking_seats.price is a snapshot taken at booking time, so later changes
  to the event's prices never alter an existing booking
- `abandoned` is only reached through the optional stale-pending policy
"""

import enum

from sqlalchemy import Column, String, ForeignKey, Numeric, Text, CheckConstraint, Index
from sqlalchemy.orm import relationship

from boxoffice.db.base import Base, TimestampMixin, new_id


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ABANDONED = "abandoned"


# Statuses whose seats may not be locked or booked again
SEAT_HOLDING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=new_id)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False)
    user_email = Column(String(255), nullable=False)
    user_name = Column(String(255), nullable=False)
    user_phone = Column(String(50), nullable=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    voucher = Column(Text, nullable=True)

    event = relationship("Event", back_populates="bookings")
    seats = relationship("BookingSeat", back_populates="booking", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="booking", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="check_booking_total_non_negative"),
        CheckConstraint("status IN ('pending', 'confirmed', 'abandoned')", name="check_booking_status"),
        Index("ix_bookings_event_status", "event_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, event={self.event_id}, status={self.status}, total={self.total_amount})>"


class BookingSeat(Base):
    __tablename__ = "booking_seats"

    id = Column(String(36), primary_key=True, default=new_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    seat_id = Column(String(36), ForeignKey("seats.id"), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)

    booking = relationship("Booking", back_populates="seats")
    seat = relationship("Seat")

    def __repr__(self) -> str:
        return f"<BookingSeat(booking={self.booking_id}, seat={self.seat_id}, price={self.price})>"
