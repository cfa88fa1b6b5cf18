"""Prometheus metrics for the report pipeline.

Operational signals only: submission outcomes, limiter decisions, store call
latency and failures. Every series carries the service and environment labels
taken from SERVICE_NAME and ENVIRONMENT.
"""

import os
import threading

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

METRICS_CONTENT_TYPE = CONTENT_TYPE_LATEST

BASE_LABELS = ("service", "environment")

# Store deadlines are a few seconds, so buckets stop there
STORE_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 3.0, 5.0)


class MetricsCollector:
    """Counters and histograms for one registry.

    A private registry per collector keeps tests isolated from each other and
    from the process default registry.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()
        self.base_labels = {
            "service": os.environ.get("SERVICE_NAME", "beachradar-api"),
            "environment": os.environ.get("ENVIRONMENT", "development"),
        }

        self.reports_accepted_total = self._counter(
            "reports_accepted_total", "Reports accepted and persisted"
        )
        self.reports_rejected_total = self._counter(
            "reports_rejected_total", "Report submissions rejected", "reason"
        )
        self.volume_limit_checks_total = self._counter(
            "volume_limit_checks_total",
            "Volume limiter decisions (allowed, blocked, failed_open)",
            "result",
        )
        self.report_store_errors_total = self._counter(
            "report_store_errors_total",
            "Report store failures and timeouts",
            "operation",
            "reason",
        )
        self.report_store_call_seconds = Histogram(
            "report_store_call_seconds",
            "Report store call latency, including failed calls",
            labelnames=[*BASE_LABELS, "operation"],
            buckets=STORE_LATENCY_BUCKETS,
            registry=self._registry,
        )

    def _counter(self, name: str, documentation: str, *labels: str) -> Counter:
        return Counter(
            name,
            documentation,
            labelnames=[*BASE_LABELS, *labels],
            registry=self._registry,
        )

    def increment_reports_accepted(self) -> None:
        self.reports_accepted_total.labels(**self.base_labels).inc()

    def increment_reports_rejected(self, reason: str) -> None:
        """Count a rejected submission under its error code."""
        self.reports_rejected_total.labels(**self.base_labels, reason=reason).inc()

    def increment_volume_limit_checks(self, result: str) -> None:
        self.volume_limit_checks_total.labels(**self.base_labels, result=result).inc()

    def increment_store_errors(self, operation: str, reason: str) -> None:
        """Count a store failure; reason is "timeout" or "error"."""
        self.report_store_errors_total.labels(
            **self.base_labels, operation=operation, reason=reason
        ).inc()

    def observe_store_call(self, operation: str, seconds: float) -> None:
        self.report_store_call_seconds.labels(
            **self.base_labels, operation=operation
        ).observe(seconds)

    def get_registry(self) -> CollectorRegistry:
        return self._registry


_metrics_collector: MetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics_collector() -> MetricsCollector:
    """Process-wide collector, created on first use."""
    global _metrics_collector
    with _collector_lock:
        if _metrics_collector is None:
            _metrics_collector = MetricsCollector()
        return _metrics_collector


def generate_metrics() -> bytes:
    """Exposition text for the process-wide collector."""
    return generate_latest(get_metrics_collector().get_registry())


def reset_metrics_collector() -> None:
    """Drop the process-wide collector (tests)."""
    global _metrics_collector
    with _collector_lock:
        _metrics_collector = None
