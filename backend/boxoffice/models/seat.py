"""
Seat model.

Seats are generated once per venue and never change afterwards. Availability
is never stored here: it is always derived per (event, seat) from seat locks
and bookings.
"""

import enum

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from boxoffice.db.base import Base, new_id


class SeatTier(str, enum.Enum):
    STANDARD = "standard"
    PREMIUM = "premium"
    VIP = "vip"


class Seat(Base):
    __tablename__ = "seats"

    id = Column(String(36), primary_key=True, default=new_id)
    venue_id = Column(String(36), ForeignKey("venues.id"), nullable=False, index=True)
    row_label = Column(String(10), nullable=False)
    seat_number = Column(Integer, nullable=False)
    tier = Column(String(20), nullable=False, default=SeatTier.STANDARD.value)

    venue = relationship("Venue", back_populates="seats")

    __table_args__ = (
        UniqueConstraint("venue_id", "row_label", "seat_number", name="uq_venue_seat"),
        CheckConstraint("tier IN ('standard', 'premium', 'vip')", name="check_seat_tier"),
    )

    def __repr__(self) -> str:
        return f"<Seat(id={self.id}, row={self.row_label}, number={self.seat_number}, tier={self.tier})>"
