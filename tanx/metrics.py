"""
Prometheus metrics for monitoring.

Tracks API calls, token refreshes and transaction flow outcomes.
"""

import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)


class Metrics:
    """
    Prometheus metrics collector.

    Tracks:
    - API request count and latency
    - Token refresh attempts
    - Transaction flow runs by kind and final state
    """

    def __init__(self, enabled: bool = True, port: Optional[int] = None):
        """
        Initialize metrics.

        Args:
            enabled: Enable metrics collection
            port: Metrics HTTP server port (no server when None)
        """
        self.enabled = enabled
        self.registry = CollectorRegistry()

        if not self.enabled:
            return

        # API metrics
        self.api_requests = Counter(
            'tanx_api_requests_total',
            'Total API requests',
            ['method', 'endpoint', 'status'],
            registry=self.registry
        )

        self.api_latency = Histogram(
            'tanx_api_latency_seconds',
            'API request latency',
            ['method', 'endpoint'],
            registry=self.registry
        )

        # Session metrics
        self.token_refreshes = Counter(
            'tanx_token_refreshes_total',
            'Token refresh attempts',
            ['status'],
            registry=self.registry
        )

        # Flow metrics
        self.flows = Counter(
            'tanx_transaction_flows_total',
            'Transaction flow runs',
            ['flow', 'state'],
            registry=self.registry
        )

        self.flow_latency = Histogram(
            'tanx_transaction_flow_seconds',
            'Transaction flow duration',
            ['flow'],
            registry=self.registry
        )

        if port is not None:
            try:
                start_http_server(port, registry=self.registry)
                logger.info(f"Metrics server started on port {port}")
            except OSError as e:
                logger.error(f"Failed to start metrics server: {e}")

    def track_api_request(self, method: str, endpoint: str, status: str) -> None:
        """Record API request."""
        if self.enabled:
            self.api_requests.labels(method=method, endpoint=endpoint, status=status).inc()

    def track_api_latency(self, method: str, endpoint: str, duration: float) -> None:
        """Record API latency."""
        if self.enabled:
            self.api_latency.labels(method=method, endpoint=endpoint).observe(duration)

    def track_token_refresh(self, status: str) -> None:
        """Record a token refresh attempt (success / failure)."""
        if self.enabled:
            self.token_refreshes.labels(status=status).inc()

    def track_flow(self, flow: str, state: str) -> None:
        """Record the final state of a transaction flow."""
        if self.enabled:
            self.flows.labels(flow=flow, state=state).inc()

    def track_flow_latency(self, flow: str, duration: float) -> None:
        """Record flow duration."""
        if self.enabled:
            self.flow_latency.labels(flow=flow).observe(duration)


# Global metrics instance
_metrics: Optional[Metrics] = None


def get_metrics(enabled: bool = True, port: Optional[int] = None) -> Metrics:
    """Get or create metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = Metrics(enabled=enabled, port=port)
    return _metrics

