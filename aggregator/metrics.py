"""
Prometheus Metrics for the Financial Aggregator API.

This module defines all metrics exposed at the /metrics endpoint.
Metrics are categorized into:

1. Data Metrics - what the API is serving
   - Refresh outcomes, balance movements, query result sizes

2. Technical Metrics - For Engineering/SRE teams
   - Request counts and latencies
"""
from prometheus_client import Counter, Histogram, Info

# =============================================================================
# SERVICE INFO
# =============================================================================

SERVICE_INFO = Info(
    "aggregator_service",
    "Service information"
)
SERVICE_INFO.info({
    "version": "0.1.0",
    "service": "financial-aggregator-api",
})

# =============================================================================
# DATA METRICS
# =============================================================================

# Counter: Refresh attempts by outcome
REFRESH_TOTAL = Counter(
    "aggregator_refresh_total",
    "Account refresh attempts",
    ["outcome"]  # refreshed, not_found
)

# Histogram: Refresh latency including the simulated upstream call
REFRESH_LATENCY = Histogram(
    "aggregator_refresh_latency_seconds",
    "Time to refresh an account",
    buckets=[0.001, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Histogram: Balance change applied by a refresh
BALANCE_DELTA = Histogram(
    "aggregator_refresh_balance_delta",
    "Balance change applied per refresh, in account currency",
    buckets=[-1.0, -0.5, -0.1, 0.0, 0.1, 0.5, 1.0]
)

# Histogram: Filtered (pre-pagination) size of transaction queries
TRANSACTION_QUERY_TOTAL = Histogram(
    "aggregator_transaction_query_matches",
    "Number of transactions matching a query before pagination",
    buckets=[0, 1, 5, 10, 25, 50, 100, 500]
)

# Counter: Lookups by ID that found nothing
NOT_FOUND_TOTAL = Counter(
    "aggregator_not_found_total",
    "Lookups for unknown IDs",
    ["resource"]  # account, transaction
)

# =============================================================================
# HTTP METRICS (Standard)
# =============================================================================

HTTP_REQUESTS = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

HTTP_REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def record_request(method: str, endpoint: str, status: int, latency_seconds: float) -> None:
    """Record one completed HTTP request."""
    HTTP_REQUESTS.labels(method=method, endpoint=endpoint, status=status).inc()
    HTTP_REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(latency_seconds)


def record_refresh(refreshed: bool, latency_seconds: float) -> None:
    """Record the outcome of a refresh attempt."""
    outcome = "refreshed" if refreshed else "not_found"
    REFRESH_TOTAL.labels(outcome=outcome).inc()
    REFRESH_LATENCY.observe(latency_seconds)


def record_balance_delta(delta: float) -> None:
    BALANCE_DELTA.observe(delta)


def record_transaction_query(total: int) -> None:
    TRANSACTION_QUERY_TOTAL.observe(total)


def record_not_found(resource: str) -> None:
    NOT_FOUND_TOTAL.labels(resource=resource).inc()
