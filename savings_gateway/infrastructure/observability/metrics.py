"""Prometheus metrics for monitoring challenge creation, deposits, and webhook performance"""

from prometheus_client import Counter, Histogram

# Challenge metrics
challenge_created_counter = Counter(
    "savings_challenge_created_total",
    "Total savings challenges created",
    ["mode", "direction"],
)

challenge_target_bucket_counter = Counter(
    "savings_challenge_target_bucket",
    "Challenge targets by bucket",
    ["bucket"],  # In whole currency units: <1000, 1000-5000, 5000-10000, 10000+
)

status_transition_counter = Counter(
    "savings_challenge_status_total",
    "Challenge status transitions",
    ["status"],  # active | paused | completed | cancelled
)

# Deposit metrics
deposit_counter = Counter(
    "savings_deposit_total",
    "Deposits recorded",
    ["status"],  # paid | pending | skipped
)

duplicate_deposit_counter = Counter(
    "savings_duplicate_deposit_total",
    "Deposit replays for weeks already paid",
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Linked-transaction webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_challenge_created(mode: str, direction: str, target_amount_cents: int) -> None:
    """Record creation metrics for monitoring challenge mix and target distribution"""
    challenge_created_counter.labels(mode=mode, direction=direction).inc()

    if target_amount_cents < 1000_00:
        bucket = "<1000"
    elif target_amount_cents <= 5000_00:
        bucket = "1000-5000"
    elif target_amount_cents <= 10000_00:
        bucket = "5000-10000"
    else:
        bucket = "10000+"

    challenge_target_bucket_counter.labels(bucket=bucket).inc()


def record_deposit_outcome(status: str, challenge_status: str, previous_status: str) -> None:
    """Record a deposit and, if it closed the challenge, the transition"""
    deposit_counter.labels(status=status).inc()
    if challenge_status != previous_status:
        status_transition_counter.labels(status=challenge_status).inc()
