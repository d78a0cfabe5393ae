"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Reservation metrics
reservation_attempts = Counter(
    'reservation_attempts_total',
    'Total reservation create/reschedule attempts',
    ['operation', 'status']  # create/reschedule x success/conflict/invalid
)

reservation_latency = Histogram(
    'reservation_write_latency_seconds',
    'Reservation write latency (lock + overlap re-check + insert)',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Access metrics
invite_accepts = Counter(
    'invite_accepts_total',
    'Invite accept outcomes',
    ['result']  # accepted, expired, conflict, not_found
)

participant_joins = Counter(
    'participant_joins_total',
    'Participants added to reservations',
    ['path']  # invite, link, owner, create
)

password_checks = Counter(
    'short_link_password_checks_total',
    'Short link password verifications',
    ['result']  # success, rejected
)

status_updates = Counter(
    'participant_status_updates_total',
    'Participant status writes',
    ['type']  # payment, attendance
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_reservation_attempt(operation: str, status: str):
    """Record reservation write. Status: success, conflict, invalid"""
    reservation_attempts.labels(operation=operation, status=status).inc()


def record_invite_accept(result: str):
    invite_accepts.labels(result=result).inc()


def record_participant_join(path: str):
    participant_joins.labels(path=path).inc()


def record_password_check(success: bool):
    password_checks.labels(result="success" if success else "rejected").inc()


def record_status_update(status_type: str):
    status_updates.labels(type=status_type).inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
