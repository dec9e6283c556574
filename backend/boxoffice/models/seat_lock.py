"""
Seat lock: a time-bounded claim on one (event, seat) by one session.

The unique constraint on (event_id, seat_id) is the storage-level backstop
for "at most one lock per seat per event"; the lock manager's per-event
critical section is what keeps callers from ever hitting it.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, UniqueConstraint

from boxoffice.db.base import Base, new_id, utcnow


class SeatLock(Base):
    __tablename__ = "seat_locks"

    id = Column(String(36), primary_key=True, default=new_id)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False)
    seat_id = Column(String(36), ForeignKey("seats.id"), nullable=False)
    session_id = Column(String(255), nullable=False)
    locked_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("event_id", "seat_id", name="uq_seat_lock_event_seat"),
        Index("ix_seat_locks_expires_at", "expires_at"),
        Index("ix_seat_locks_event_session", "event_id", "session_id"),
    )

    def __repr__(self) -> str:
        return f"<SeatLock(event={self.event_id}, seat={self.seat_id}, session={self.session_id})>"
