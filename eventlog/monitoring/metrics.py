"""Prometheus metrics collection."""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

from eventlog.core.logging import get_logger

logger = get_logger(__name__)


class MetricsCollector:
    """Collects and exposes Prometheus metrics."""

    def __init__(self) -> None:
        """Initialize metrics collectors."""
        # Event recording metrics
        self.events_recorded_total = Counter(
            "system_log_events_recorded_total",
            "Total number of system log events persisted",
            ["level", "category"],
        )

        self.event_record_failures_total = Counter(
            "system_log_record_failures_total",
            "Total number of system log events that could not be persisted",
        )

        # Retention metrics
        self.retention_logs_deleted_total = Counter(
            "system_log_retention_deleted_total",
            "Total number of system logs deleted by retention cleanup",
        )

        self.retention_policy_failures_total = Counter(
            "system_log_retention_policy_failures_total",
            "Total number of retention policies that failed to execute",
        )

        self.growth_alerts_total = Counter(
            "system_log_growth_alerts_total",
            "Total number of log growth alerts raised",
            ["event_type"],
        )

        # API metrics
        self.api_requests_total = Counter(
            "api_requests_total",
            "Total API requests",
            ["method", "endpoint", "status_code"],
        )

        self.api_request_duration_seconds = Histogram(
            "api_request_duration_seconds",
            "API request duration",
            ["method", "endpoint"],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
        )

        logger.info("metrics_collector_initialized")

    def record_event(self, level: str, category: str) -> None:
        """Record a persisted event."""
        self.events_recorded_total.labels(level=level, category=category).inc()

    def record_event_failure(self) -> None:
        """Record an event that could not be persisted."""
        self.event_record_failures_total.inc()

    def record_logs_deleted(self, count: int) -> None:
        """Record logs removed by retention cleanup."""
        self.retention_logs_deleted_total.inc(count)

    def record_policy_failure(self) -> None:
        """Record a failed retention policy."""
        self.retention_policy_failures_total.inc()

    def record_growth_alert(self, event_type: str) -> None:
        """Record a growth alert."""
        self.growth_alerts_total.labels(event_type=event_type).inc()

    def record_api_request(
        self, method: str, endpoint: str, status_code: int, duration: float
    ) -> None:
        """Record API request."""
        self.api_requests_total.labels(
            method=method, endpoint=endpoint, status_code=status_code
        ).inc()
        self.api_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(
            duration
        )


# Global metrics collector instance
_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get or create global metrics collector."""
    global _metrics_collector

    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()

    return _metrics_collector


async def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
