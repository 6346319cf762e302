"""
Prometheus metrics for the donor finder service.

Tracks HTTP traffic, users API fetches, donor loads, help requests
and live visitor sessions.
"""

from fastapi import Response
from prometheus_client import (CONTENT_TYPE_LATEST, Counter, Gauge, Histogram,
                               generate_latest)

# Request metrics
http_requests_total = Counter(
    "donor_finder_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "donor_finder_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0),
)

# Users API metrics
users_fetch_total = Counter(
    "donor_finder_users_fetch_total",
    "Users API fetches by outcome",
    ["outcome"],
)

donors_loaded = Histogram(
    "donor_finder_donors_loaded",
    "Number of donors mapped per session load",
    buckets=(0, 1, 5, 10, 25, 50, 100, 250),
)

# User interaction metrics
help_requests_total = Counter(
    "donor_finder_help_requests_total",
    "Help request clicks by outcome",
    ["outcome"],
)

active_sessions = Gauge(
    "donor_finder_active_sessions", "Number of visitor sessions held in memory"
)


def track_request_metrics(
    method: str, endpoint: str, status_code: int, duration: float
):
    """Track HTTP request metrics."""
    http_requests_total.labels(
        method=method, endpoint=endpoint, status=status_code
    ).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(
        duration
    )


def track_users_fetch(outcome: str):
    """Track a users API fetch (success, timeout, http_error, ...)."""
    users_fetch_total.labels(outcome=outcome).inc()


def track_donors_loaded(count: int):
    donors_loaded.observe(count)


def track_help_request(accepted: bool):
    """Track a help request click."""
    outcome = "accepted" if accepted else "ignored"
    help_requests_total.labels(outcome=outcome).inc()


def update_active_sessions(count: int):
    """Update active sessions gauge."""
    active_sessions.set(count)


async def metrics_endpoint():
    """
    Prometheus metrics endpoint.

    Returns:
        Response with Prometheus metrics in text format
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
