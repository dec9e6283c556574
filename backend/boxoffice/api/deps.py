"""
Request dependencies for process-wide components created in the lifespan.
"""

from fastapi import Request

from boxoffice.core.concurrency import KeyedLocks
from boxoffice.services.interfaces.payment_gateway import PaymentGateway


def get_event_locks(request: Request) -> KeyedLocks:
    return request.app.state.event_locks


def get_booking_locks(request: Request) -> KeyedLocks:
    return request.app.state.booking_locks


def get_payment_gateway(request: Request) -> PaymentGateway:
    return request.app.state.payment_gateway
