"""Application metrics using the Prometheus client library.

Every metric the service exposes is defined here, in one inventory.
Modules import the metric they own and increment/observe it at the point
of action.  GET /metrics renders the default registry.

Counters only go up; rates and ratios are computed in PromQL, e.g. the
share of video requests denied for missing enrollment:

  rate(media_access_denied_total[5m])
    / rate(media_credentials_issued_total[5m])

signing_key_fetches_total is the one to alert on: in steady state it
should increase once per process start.  A climbing failure series means
the secret store is down and every video request is failing with 503.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
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
    # Signing is pure CPU (~1ms); the upper buckets catch secret-store
    # cold starts and store timeouts.
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Media access
# ---------------------------------------------------------------------------

SIGNING_KEY_FETCHES = Counter(
    "signing_key_fetches_total",
    "Secret-store fetches of the media signing key",
    ["result"],  # "success" or "failure"
)

CREDENTIALS_ISSUED = Counter(
    "media_credentials_issued_total",
    "Signed media credentials issued",
    ["kind"],  # "resource_token" or "course_pass"
)

ACCESS_DENIED = Counter(
    "media_access_denied_total",
    "Media requests refused by the enrollment gate",
)

# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

PROGRESS_UPDATES = Counter(
    "progress_updates_total",
    "Progress writes by operation",
    ["operation"],  # "access" or "completion"
)
