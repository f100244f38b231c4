"""Prometheus metrics for offers, contracts, points and persistence failures"""

from decimal import Decimal
from prometheus_client import Counter, Histogram

from lending_gateway.domain.exceptions import ErrorKind

# Lifecycle metrics
offer_counter = Counter(
    "lending_offers_total",
    "Offer creation attempts",
    ["outcome", "rule"],  # created | rejected, failing eligibility rule
)

loan_request_counter = Counter(
    "lending_loan_requests_total",
    "Loan request transitions",
    ["status"],  # PENDING | APPROVED | REJECTED
)

contract_amount_histogram = Histogram(
    "lending_contract_total_amount",
    "Total repayable amount of created contracts",
    buckets=[500, 1_000, 5_000, 10_000, 25_000, 50_000, 100_000],
)

# Ledger metrics
points_awarded_counter = Counter(
    "lending_points_awarded_total",
    "Points granted to users",
    ["reason"],
)

points_failure_counter = Counter(
    "lending_points_failures_total",
    "Points awards that could not be applied",
    ["reason"],
)

redemption_counter = Counter(
    "lending_reward_redemptions_total",
    "Rewards redeemed",
    ["reward_id"],
)

# Persistence metrics
retry_counter = Counter(
    "lending_persistence_retries_total",
    "Persistence calls retried after a transient failure",
    ["kind"],
)

operation_failure_counter = Counter(
    "lending_operation_failures_total",
    "Operations surfaced to callers as failures",
    ["kind"],  # VALIDATION | AUTH | NETWORK | SERVER
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_retry(kind: ErrorKind) -> None:
    retry_counter.labels(kind=kind.value).inc()


def record_offer(created: bool, rule: str = "") -> None:
    outcome = "created" if created else "rejected"
    offer_counter.labels(outcome=outcome, rule=rule or "none").inc()


def record_contract(total_amount: Decimal) -> None:
    """Record approval and the size of the resulting contract"""
    loan_request_counter.labels(status="APPROVED").inc()
    contract_amount_histogram.observe(float(total_amount))


def record_points(reason: str, amount: int, applied: bool) -> None:
    if applied:
        points_awarded_counter.labels(reason=reason).inc(amount)
    else:
        points_failure_counter.labels(reason=reason).inc()
