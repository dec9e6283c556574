"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .payment_gateway import PaymentGateway, PaymentResult
from .fixed_gateway import FixedOutcomeGateway

__all__ = ['PaymentGateway', 'PaymentResult', 'FixedOutcomeGateway']
