"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Issuance metrics
ticket_issue_attempts = Counter(
    'ticket_issue_attempts_total',
    'Total ticket issuance attempts',
    ['result']  # issued, full, not_found
)

ticket_issue_latency = Histogram(
    'ticket_issue_latency_seconds',
    'Ticket issuance latency, including conflict retries',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

allocation_retries = Counter(
    'allocation_retry_attempts_total',
    'Compare-and-set retries caused by concurrent writers',
    ['target']  # counter, ticket
)

# Lifecycle metrics
ticket_transitions = Counter(
    'ticket_transitions_total',
    'Applied ticket status transitions',
    ['to_status']
)

counter_resets = Counter(
    'counter_resets_total',
    'Counters reset to an empty queue'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set/invalidate, hit/miss/error
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


def record_issue_attempt(result: str):
    """Record issuance attempt. Result: issued, full, not_found"""
    ticket_issue_attempts.labels(result=result).inc()


def record_retry(target: str):
    allocation_retries.labels(target=target).inc()


def record_transition(to_status: str, count: int = 1):
    if count:
        ticket_transitions.labels(to_status=to_status).inc(count)


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()
