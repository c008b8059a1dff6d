"""Prometheus metrics inventory.

Every metric the service exposes is declared here; other modules import
the one they need and increment it where the event happens.

The permission counters matter more than the HTTP ones: the resolver
swallows store failures and answers with a permissive default, so
`permission_store_failures_total` is the only place an outage of the
license tables shows up as a number rather than as "everything allowed".
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Permission resolution
# ---------------------------------------------------------------------------

PERMISSION_CACHE_OPERATIONS = Counter(
    "permission_cache_operations_total",
    "Resolver cache lookups by cache and result",
    ["cache", "result"],  # cache: license|modules|permissions, result: hit|miss
)

PERMISSION_STORE_FAILURES = Counter(
    "permission_store_failures_total",
    "Store queries that failed and were answered with a fallback default",
    ["operation"],
)

ACCESS_GATE_DECISIONS = Counter(
    "access_gate_decisions_total",
    "Access gate render outcomes",
    ["gate", "outcome"],  # gate: module|permission
)
