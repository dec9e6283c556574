"""
Simulated payment gateway.

Stands in for a real processor: every charge takes PAYMENT_LATENCY_SECONDS
and a PAYMENT_DECLINE_RATE fraction of charges is declined. The random source
is injectable so callers can pin the outcome.
"""

import asyncio
import random
from decimal import Decimal
from typing import Optional

from boxoffice.core.logging import get_logger
from boxoffice.services.interfaces.payment_gateway import PaymentGateway, PaymentResult, new_transaction_id

logger = get_logger(__name__)


class SimulatedPaymentGateway(PaymentGateway):

    def __init__(
        self,
        latency_seconds: float = 1.5,
        decline_rate: float = 0.1,
        rng: Optional[random.Random] = None,
    ):
        if not 0.0 <= decline_rate <= 1.0:
            raise ValueError("decline_rate must be between 0 and 1")
        self.latency_seconds = latency_seconds
        self.decline_rate = decline_rate
        self.rng = rng or random.Random()

    async def charge(
        self,
        amount: Decimal,
        method: str,
        reference: str,
        card: Optional[dict] = None,
    ) -> PaymentResult:
        if self.latency_seconds > 0:
            await asyncio.sleep(self.latency_seconds)

        if self.rng.random() < self.decline_rate:
            logger.info("simulated_charge_declined", reference=reference, method=method)
            return PaymentResult(approved=False, failure_reason="card_declined")

        transaction_id = new_transaction_id()
        logger.info("simulated_charge_approved", reference=reference, method=method, transaction_id=transaction_id)
        return PaymentResult(approved=True, transaction_id=transaction_id)
