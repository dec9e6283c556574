"""
Payment attempt. A booking may collect several (a decline followed by a
retry); only a completed one confirms the booking.
"""

import enum

from sqlalchemy import Column, String, DateTime, ForeignKey, Numeric, CheckConstraint
from sqlalchemy.orm import relationship

from boxoffice.db.base import Base, new_id, utcnow


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(String(30), nullable=False)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    transaction_id = Column(String(64), nullable=True, unique=True)
    failure_reason = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    booking = relationship("Booking", back_populates="payments")

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'completed', 'failed')", name="check_payment_status"),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, booking={self.booking_id}, status={self.status})>"
