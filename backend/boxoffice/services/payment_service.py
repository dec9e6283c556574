"""
Payment settlement for pending bookings.

Settlements of the same booking are serialised by a per-booking lock, so a
double-clicked "pay" button cannot charge twice. The final flip to
`confirmed` is also a conditional UPDATE ... WHERE status = 'pending', which
keeps the invariant even against writers outside this process.

The per-booking lock is held across the gateway call, so a duplicate
settlement waits out the charge latency before it sees ALREADY_CONFIRMED.
Charging and confirming are one step for a given booking.

A decline records a failed payment and leaves the booking pending. Its seats
stay protected because the booking row, not the payment status, is what
blocks them.
"""

import time
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.core.concurrency import KeyedLocks
from boxoffice.core.exceptions import (
    AlreadyConfirmedError,
    BookingAbandonedError,
    InternalFailure,
    NotFoundError,
    PaymentDeclinedError,
)
from boxoffice.core.logging import get_logger
from boxoffice.core.metrics import payment_latency, record_payment_attempt
from boxoffice.db.base import utcnow
from boxoffice.db.session import transaction
from boxoffice.models import Booking, BookingStatus, Payment, PaymentStatus
from boxoffice.services.interfaces.payment_gateway import PaymentGateway
from boxoffice.services.voucher_service import generate_voucher

logger = get_logger(__name__)


@dataclass
class Settlement:
    booking_id: str
    payment_id: str
    transaction_id: str
    voucher: str


async def _load_payable_booking(db: AsyncSession, booking_id: str) -> Booking:
    booking = await db.get(Booking, booking_id, populate_existing=True)
    if not booking:
        raise NotFoundError("Booking", booking_id)
    if booking.status == BookingStatus.CONFIRMED.value:
        record_payment_attempt("duplicate")
        raise AlreadyConfirmedError(booking_id)
    if booking.status == BookingStatus.ABANDONED.value:
        raise BookingAbandonedError(booking_id)
    return booking


async def settle_payment(
    db: AsyncSession,
    booking_locks: KeyedLocks,
    gateway: PaymentGateway,
    booking_id: str,
    method: str,
    *,
    card: Optional[dict] = None,
) -> Settlement:
    """
    Charge a pending booking and confirm it on success.

    Raises AlreadyConfirmedError, PaymentDeclinedError, NotFoundError,
    BookingAbandonedError or InternalFailure.
    """
    start = time.perf_counter()
    async with booking_locks.hold(booking_id):
        booking = await _load_payable_booking(db, booking_id)
        amount = booking.total_amount
        # Release the read snapshot before waiting on the gateway
        await db.commit()

        try:
            result = await gateway.charge(amount, method, booking_id, card=card)
        except Exception as e:
            record_payment_attempt("error")
            logger.error("payment_gateway_error", booking_id=booking_id, method=method, error=str(e))
            raise InternalFailure("Payment processing failed") from e

        if not result.approved:
            async with transaction(db, "record_failed_payment"):
                payment = Payment(
                    booking_id=booking_id,
                    amount=amount,
                    method=method,
                    status=PaymentStatus.FAILED.value,
                    failure_reason=result.failure_reason,
                )
                db.add(payment)
                await db.flush()
            record_payment_attempt("declined")
            logger.info("payment_declined", booking_id=booking_id, method=method, reason=result.failure_reason)
            raise PaymentDeclinedError(booking_id, reason=result.failure_reason, payment_id=payment.id)

        voucher = generate_voucher(booking_id, result.transaction_id)
        now = utcnow()
        async with transaction(db, "confirm_booking"):
            payment = Payment(
                booking_id=booking_id,
                amount=amount,
                method=method,
                status=PaymentStatus.COMPLETED.value,
                transaction_id=result.transaction_id,
                completed_at=now,
            )
            db.add(payment)
            confirmed = await db.execute(
                update(Booking)
                .where(Booking.id == booking_id, Booking.status == BookingStatus.PENDING.value)
                .values(status=BookingStatus.CONFIRMED.value, voucher=voucher, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if confirmed.rowcount != 1:
                record_payment_attempt("duplicate")
                logger.warning(
                    "payment_captured_for_unpayable_booking",
                    booking_id=booking_id,
                    transaction_id=result.transaction_id,
                )
                raise AlreadyConfirmedError(booking_id)
            await db.flush()

    payment_latency.observe(time.perf_counter() - start)
    record_payment_attempt("completed")
    logger.info(
        "payment_completed",
        booking_id=booking_id,
        payment_id=payment.id,
        transaction_id=result.transaction_id,
        amount=str(amount),
    )
    return Settlement(
        booking_id=booking_id,
        payment_id=payment.id,
        transaction_id=result.transaction_id,
        voucher=voucher,
    )
