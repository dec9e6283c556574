"""
Payment endpoint: settle a pending booking.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.api.deps import get_booking_locks, get_payment_gateway
from boxoffice.core.concurrency import KeyedLocks
from boxoffice.db.session import get_db
from boxoffice.schemas.payment import PaymentRequest, PaymentResponse
from boxoffice.services.cache_service import invalidate_event_cache
from boxoffice.services.interfaces.payment_gateway import PaymentGateway
from boxoffice.services.payment_service import settle_payment

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", response_model=PaymentResponse)
async def pay(
    payment_data: PaymentRequest,
    db: AsyncSession = Depends(get_db),
    booking_locks: KeyedLocks = Depends(get_booking_locks),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Charge a pending booking.

    402 when the charge is declined (the booking stays pending and can be
    retried), 400 when it was already paid.
    """
    settlement = await settle_payment(
        db,
        booking_locks,
        gateway,
        payment_data.booking_id,
        payment_data.method,
        card=payment_data.card_details(),
    )
    # Confirmed seats change the listing's availability counts
    await invalidate_event_cache()
    return PaymentResponse(
        payment_id=settlement.payment_id,
        transaction_id=settlement.transaction_id,
        voucher=settlement.voucher,
    )
