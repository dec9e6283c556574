"""
Venue model. A venue owns its seats for its whole lifetime; every event held
there shares the same seat set.
"""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from boxoffice.db.base import Base, TimestampMixin, new_id


class Venue(Base, TimestampMixin):
    __tablename__ = "venues"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    capacity = Column(Integer, nullable=False)
    rows = Column(Integer, nullable=False)
    seats_per_row = Column(Integer, nullable=False)

    seats = relationship("Seat", back_populates="venue", cascade="all, delete-orphan")
    events = relationship("Event", back_populates="venue")

    def __repr__(self) -> str:
        return f"<Venue(id={self.id}, name={self.name}, capacity={self.capacity})>"
