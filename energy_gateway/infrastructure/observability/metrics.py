"""Prometheus metrics for analytics usage, balance movements and status transitions"""

from prometheus_client import Counter, Histogram

# Analytics metrics
analytics_counter = Counter(
    "energy_analytics_requests_total",
    "Balance analytics computed",
    ["period"],  # 1m | 3m | 6m | 1y
)

performance_score_histogram = Histogram(
    "energy_performance_score",
    "Distribution of computed performance scores",
    buckets=[0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)

# Write metrics
balance_movement_counter = Counter(
    "energy_balance_movements_total",
    "Balance movements recorded",
    ["transaction_type", "outcome"],  # outcome: created | rejected
)

status_transition_counter = Counter(
    "energy_status_transitions_total",
    "Status changes applied to entities",
    ["entity", "status"],
)

# Storage metrics
storage_failure_counter = Counter(
    "energy_storage_failures_total",
    "Failed database operations",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_analytics(period: str, performance_score: int) -> None:
    """Record analytics usage and the resulting score distribution"""
    analytics_counter.labels(period=period).inc()
    performance_score_histogram.observe(performance_score)


def record_movement(transaction_type: str, created: bool) -> None:
    balance_movement_counter.labels(
        transaction_type=transaction_type,
        outcome="created" if created else "rejected",
    ).inc()


def record_transition(entity: str, status: str) -> None:
    status_transition_counter.labels(entity=entity, status=status).inc()
