"""
Payment gateway factory.
Configures which gateway settlement talks to.
"""

from boxoffice.core.config import Settings, get_settings
from boxoffice.services.interfaces.payment_gateway import PaymentGateway
from boxoffice.services.payment_gateway import SimulatedPaymentGateway


def build_payment_gateway(settings: Settings = None) -> PaymentGateway:
    """
    Build the configured gateway.

    Only the simulated gateway exists; latency and decline rate come from
    PAYMENT_LATENCY_SECONDS and PAYMENT_DECLINE_RATE.
    """
    settings = settings or get_settings()
    return SimulatedPaymentGateway(
        latency_seconds=settings.PAYMENT_LATENCY_SECONDS,
        decline_rate=settings.PAYMENT_DECLINE_RATE,
    )
