"""Prometheus metrics for the ad targeting service.

All metrics are module-level singletons registered on the default
``REGISTRY``.  They are safe to import from multiple modules because
prometheus_client deduplicates by metric name.

Metrics defined here:

  advertisements_created_total
      Counter — advertisement graphs committed by ``POST /api/v1/ad``.

  advertisement_write_failures_total{stage}
      Counter — graph writes rolled back, labelled by the failing write stage
      (insert advertisement, insert condition, insert country, commit).

  advertisement_list_results
      Histogram — number of items returned per ``GET /api/v1/ad``.

  http_requests_total{method, path, status}
      Counter — HTTP requests handled by the FastAPI application.

  http_request_duration_seconds{method, path}
      Histogram — HTTP request latency in seconds.

Usage::

    from ad_targeting.api.metrics import advertisements_created_total
    advertisements_created_total.inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Advertisement metrics
# ---------------------------------------------------------------------------

advertisements_created_total: Counter = Counter(
    "advertisements_created_total",
    "Advertisement graphs committed.",
)

advertisement_write_failures_total: Counter = Counter(
    "advertisement_write_failures_total",
    "Advertisement graph writes rolled back, by failing stage.",
    labelnames=["stage"],
)

advertisement_list_results: Histogram = Histogram(
    "advertisement_list_results",
    "Number of advertisements returned per list request.",
    buckets=[0, 1, 5, 10, 25, 50, 100],
)

# ---------------------------------------------------------------------------
# HTTP metrics (populated by middleware in main.py)
# ---------------------------------------------------------------------------

http_requests_total: Counter = Counter(
    "http_requests_total",
    "HTTP requests handled by the FastAPI application.",
    labelnames=["method", "path", "status"],
)
"""Labels:
  method: HTTP method (GET, POST, …)
  path:   route template where one matched, else the raw path
  status: HTTP response status code as string (e.g. '200', '400')
"""

http_request_duration_seconds: Histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds.",
    labelnames=["method", "path"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)


def get_metrics_response() -> tuple[bytes, str]:
    """Generate a Prometheus text-format metrics response.

    Returns:
        A tuple of (body_bytes, content_type_string) suitable for constructing
        a FastAPI ``Response`` object.
    """
    from prometheus_client import CONTENT_TYPE_LATEST, generate_latest  # noqa: PLC0415

    return generate_latest(), CONTENT_TYPE_LATEST
