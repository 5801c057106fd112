"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Reservation metrics
reservation_attempts = Counter(
    'reservation_attempts_total',
    'Total reservation attempts',
    ['domain', 'status']  # created, no_seats, duplicate, not_found, inactive
)

reservation_latency = Histogram(
    'reservation_latency_seconds',
    'Reservation creation latency',
    ['domain'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

reservation_cancellations = Counter(
    'reservation_cancellations_total',
    'Reservation cancellation outcomes',
    ['domain', 'outcome']  # cancelled, already_cancelled
)

event_cancellations = Counter(
    'event_cancellations_total',
    'Cancelled events',
    ['domain']
)

# Notification metrics
notifications_sent = Counter(
    'notifications_sent_total',
    'Notification e-mails handed to the transport',
    ['subject']
)

notification_failures = Counter(
    'notification_failures_total',
    'Notification e-mails that could not be delivered',
    ['subject']
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_reservation_attempt(domain: str, status: str):
    """Record reservation attempt. Status: created, no_seats, duplicate, not_found, inactive"""
    reservation_attempts.labels(domain=domain, status=status).inc()


def record_cancellation(domain: str, cancelled: bool):
    outcome = "cancelled" if cancelled else "already_cancelled"
    reservation_cancellations.labels(domain=domain, outcome=outcome).inc()


def record_notification(subject: str, delivered: bool):
    if delivered:
        notifications_sent.labels(subject=subject).inc()
    else:
        notification_failures.labels(subject=subject).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
