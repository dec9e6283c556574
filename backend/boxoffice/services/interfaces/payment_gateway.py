"""
Payment gateway interface.
Settlement only needs "charge this amount, tell me if it went through".
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
import uuid


def new_transaction_id() -> str:
    return "TXN" + uuid.uuid4().hex[:12].upper()


@dataclass
class PaymentResult:
    approved: bool
    transaction_id: Optional[str] = None
    failure_reason: Optional[str] = None


class PaymentGateway(ABC):
    """
    Interface for external payment settlement.

    Implementations:
    - SimulatedPaymentGateway: latency plus a random decline rate
    - FixedOutcomeGateway: always approves or always declines
    """

    @abstractmethod
    async def charge(
        self,
        amount: Decimal,
        method: str,
        reference: str,
        card: Optional[dict] = None,
    ) -> PaymentResult:
        """
        Attempt to collect `amount` for the booking identified by `reference`.

        Returns:
            PaymentResult with approved=True and a transaction id on success,
            approved=False and a failure reason on decline.

        A decline is a normal result, not an exception. Exceptions mean the
        gateway itself failed.
        """
        pass
