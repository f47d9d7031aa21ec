"""Prometheus metrics for monitoring ledger operations, balance conflicts and suggestions"""

from prometheus_client import Counter, Histogram

from finance_planner.domain.exceptions import LimitExceededError

# Ledger metrics
transaction_operations_counter = Counter(
    "planner_transaction_operations_total",
    "Transaction lifecycle operations committed",
    ["operation"],  # create | update | delete
)

balance_conflict_counter = Counter(
    "planner_balance_conflicts_total",
    "Balance mutations rejected by the credit card range check",
    ["reason"],  # limit_exceeded | negative_balance
)

optimistic_retry_counter = Counter(
    "planner_optimistic_lock_retries_total",
    "Operations re-run after a concurrent balance update",
)

recurring_generation_counter = Counter(
    "planner_recurring_generation_total",
    "Recurring expense generation attempts",
    ["outcome"],  # generated | skipped
)

# Category suggestion metrics
category_suggestion_counter = Counter(
    "planner_category_suggestions_total",
    "Category suggestions served",
    ["source"],  # ai | history | default
)

category_suggestion_latency_histogram = Histogram(
    "planner_category_suggestion_latency_seconds",
    "Category suggestion upstream response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transaction_operation(operation: str) -> None:
    transaction_operations_counter.labels(operation=operation).inc()


def record_balance_conflict(error: Exception) -> None:
    """Count a balance conflict by its exception type"""
    reason = "limit_exceeded" if isinstance(error, LimitExceededError) else "negative_balance"
    balance_conflict_counter.labels(reason=reason).inc()
