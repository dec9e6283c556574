"""
Event model with per-tier pricing.

Key design decisions:
- premium_price and vip_price are optional; when unset the booking
  coordinator derives them from base_price
- Index on `date` for upcoming-event listings
- Index on `status` since every listing filters on active events
"""

import enum

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Numeric, CheckConstraint
from sqlalchemy.orm import relationship

from boxoffice.db.base import Base, TimestampMixin, new_id


class EventStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=new_id)
    venue_id = Column(String(36), ForeignKey("venues.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    category = Column(String(50), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    image_url = Column(String(500), nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    premium_price = Column(Numeric(10, 2), nullable=True)
    vip_price = Column(Numeric(10, 2), nullable=True)
    status = Column(String(20), nullable=False, default=EventStatus.ACTIVE.value)

    venue = relationship("Venue", back_populates="events", lazy="joined")
    bookings = relationship("Booking", back_populates="event")

    __table_args__ = (
        CheckConstraint("base_price >= 0", name="check_base_price_non_negative"),
        CheckConstraint("status IN ('active', 'cancelled')", name="check_event_status"),
        Index("ix_events_date", "date"),
        Index("ix_events_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, status={self.status})>"
