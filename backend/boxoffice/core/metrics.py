"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Seat lock metrics
seat_lock_attempts = Counter(
    'seat_lock_attempts_total',
    'Total seat lock requests',
    ['result']  # granted, conflict, error
)

expired_locks_purged = Counter(
    'expired_locks_purged_total',
    'Seat locks removed because their expiry passed'
)

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking attempts',
    ['status']  # success, lock_expired, error
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Booking request latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

abandoned_bookings = Counter(
    'abandoned_bookings_total',
    'Pending bookings abandoned by the stale booking policy'
)

# Payment metrics
payment_attempts = Counter(
    'payment_attempts_total',
    'Total settlement attempts',
    ['result']  # completed, declined, duplicate, error
)

payment_latency = Histogram(
    'payment_latency_seconds',
    'Settlement latency including the gateway call',
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0]
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_lock_attempt(result: str):
    """Record seat lock attempt. Result: granted, conflict, error"""
    seat_lock_attempts.labels(result=result).inc()


def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, lock_expired, error"""
    booking_attempts.labels(status=status).inc()


def record_payment_attempt(result: str):
    """Record settlement attempt. Result: completed, declined, duplicate, error"""
    payment_attempts.labels(result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
