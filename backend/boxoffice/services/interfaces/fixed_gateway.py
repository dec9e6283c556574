"""
Deterministic gateway - every charge has the same outcome.
"""

from decimal import Decimal
from typing import Optional

from .payment_gateway import PaymentGateway, PaymentResult, new_transaction_id


class FixedOutcomeGateway(PaymentGateway):
    """
    Approves (or declines) every charge immediately.

    Use when:
    - Tests need both settlement outcomes without randomness
    - Local demos where latency only gets in the way
    """

    def __init__(self, approve: bool = True, reason: str = "card_declined"):
        self.approve = approve
        self.reason = reason
        self.charges = 0

    async def charge(
        self,
        amount: Decimal,
        method: str,
        reference: str,
        card: Optional[dict] = None,
    ) -> PaymentResult:
        self.charges += 1
        if self.approve:
            return PaymentResult(approved=True, transaction_id=new_transaction_id())
        return PaymentResult(approved=False, failure_reason=self.reason)
