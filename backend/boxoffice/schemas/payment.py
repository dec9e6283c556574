"""
Pydantic schemas for payment settlement.
"""

from typing import Optional
from pydantic import Field

from boxoffice.schemas.base import CamelModel


class PaymentRequest(CamelModel):
    booking_id: str = Field(..., min_length=1)
    method: str = Field(..., min_length=1, max_length=30)
    card_number: Optional[str] = Field(None, max_length=19)
    card_expiry: Optional[str] = Field(None, max_length=7)
    card_cvv: Optional[str] = Field(None, max_length=4)

    def card_details(self) -> Optional[dict]:
        if not self.card_number:
            return None
        return {"last4": self.card_number[-4:], "expiry": self.card_expiry}


class PaymentResponse(CamelModel):
    success: bool = True
    payment_id: str
    transaction_id: str
    voucher: str
