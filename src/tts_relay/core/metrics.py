"""
Prometheus Metrics for the Relay.

Metrics Exposed:
    relay_auth_total                 - Auth decisions by endpoint and outcome
    relay_requests_total             - Relay requests by result status
    relay_request_duration_seconds   - Upstream round-trip latency
    relay_upstream_status_total      - Upstream HTTP status codes

Auth outcomes are only ever "success" or "rejected". The reason a token
was rejected is not recorded.

Usage:
    from tts_relay.core.metrics import metrics

    metrics.record_auth("login", "success")
    metrics.record_relay("success", duration=0.8, upstream_status=200)

    content, content_type = metrics.get_metrics_response()
"""
from __future__ import annotations

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


class RelayMetrics:
    """
    Metrics collector backed by a private CollectorRegistry.

    A private registry keeps these metrics separate from any other
    prometheus_client users in the same process, and lets tests build a
    fresh collector without duplicate-registration errors.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self._registry = registry or CollectorRegistry()

        self._auth_total = Counter(
            "relay_auth_total",
            "Authentication decisions",
            ["endpoint", "outcome"],
            registry=self._registry,
        )
        self._requests_total = Counter(
            "relay_requests_total",
            "Relay requests by result",
            ["status"],
            registry=self._registry,
        )
        self._request_duration = Histogram(
            "relay_request_duration_seconds",
            "Upstream round-trip duration in seconds",
            buckets=(0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
            registry=self._registry,
        )
        self._upstream_status = Counter(
            "relay_upstream_status_total",
            "Upstream HTTP responses by status code",
            ["code"],
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_auth(self, endpoint: str, outcome: str) -> None:
        """
        Record an authentication decision.

        Args:
            endpoint: "login", "verify" or "generate"
            outcome: "success" or "rejected"
        """
        self._auth_total.labels(endpoint=endpoint, outcome=outcome).inc()

    def record_relay(
        self,
        status: str,
        duration: Optional[float] = None,
        upstream_status: Optional[int] = None,
    ) -> None:
        """
        Record a finished relay request.

        Args:
            status: "success", "upstream_error", "timeout", "invalid_input"
                or "not_configured"
            duration: Upstream round-trip time, if a call was made.
            upstream_status: HTTP status returned by the upstream, if any.
        """
        self._requests_total.labels(status=status).inc()
        if duration is not None:
            self._request_duration.observe(duration)
        if upstream_status is not None:
            self._upstream_status.labels(code=str(upstream_status)).inc()

    def get_metrics_response(self) -> tuple[bytes, str]:
        """Metrics in Prometheus text format as (content, content_type)."""
        return generate_latest(self._registry), CONTENT_TYPE_LATEST


# Process-wide collector
metrics = RelayMetrics()
