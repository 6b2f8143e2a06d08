from __future__ import annotations

from prometheus_client import Counter, Histogram

from speak_mcp.logging_utils import get_logger


logger = get_logger(__name__)


SPEAK_REQUESTS_TOTAL = Counter(
    "speak_requests_total",
    "Total speak requests by backend, outcome and reason.",
    ["backend", "outcome", "reason"],
)

SPEAK_REQUEST_DURATION_SECONDS = Histogram(
    "speak_request_duration_seconds",
    "Wall time of speak requests, synthesis and playback included.",
    ["backend"],
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

SPEAK_BACKEND_FAILURES_TOTAL = Counter(
    "speak_backend_failures_total",
    "Adapter-level failures observed per backend.",
    ["backend", "reason"],
)


def record_request(
    backend: str,
    outcome: str,
    reason: str | None,
    duration_seconds: float,
) -> None:
    SPEAK_REQUESTS_TOTAL.labels(
        backend=backend, outcome=outcome, reason=reason or "none"
    ).inc()
    SPEAK_REQUEST_DURATION_SECONDS.labels(backend=backend).observe(duration_seconds)


def record_backend_failure(backend: str, reason: str) -> None:
    SPEAK_BACKEND_FAILURES_TOTAL.labels(backend=backend, reason=reason).inc()
