"""
Prometheus metrics for the staticship client.

Instruments the HTTP transport and the deploy pipeline with standardized
Prometheus collectors. Applications embedding the client expose them with
their own metrics endpoint (prometheus_client.start_http_server or similar).

Metrics Provided:
    - staticship_requests_total: Counter of API requests by operation/outcome
    - staticship_request_duration_seconds: Histogram of API request latency
    - staticship_upload_files_total: Counter of files sent in deployments
    - staticship_upload_bytes_total: Counter of bytes sent in deployments
    - staticship_validation_failures_total: Counter of rejected batches by category
    - staticship_spa_detections_total: Counter of SPA detection outcomes

Usage:
    from staticship.utils.metrics import get_metrics

    metrics = get_metrics()
    with metrics.track_request("Deploy"):
        ...
    metrics.record_request("Deploy", outcome="success")
"""

import os
from contextlib import nullcontext
from typing import ContextManager, Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

from staticship.utils.logging import get_logger

# Module-level logger
logger = get_logger(__name__)


class ClientMetrics:
    """
    Centralized Prometheus collectors for the client.

    Example:
        >>> metrics = ClientMetrics(registry=CollectorRegistry())
        >>> metrics.record_request("Ping", outcome="success")
    """

    def __init__(self, enabled: bool = True, registry: Optional[CollectorRegistry] = None) -> None:
        """
        Initialize metrics collectors.

        Args:
            enabled: Whether metrics collection is enabled
            registry: Prometheus registry (process default if None)
        """
        self.enabled = enabled
        self.registry = registry if registry is not None else REGISTRY

        if not self.enabled:
            logger.debug("Metrics collection disabled")
            return

        self.requests = Counter(
            name="staticship_requests_total",
            documentation="Total number of API requests",
            labelnames=["operation", "outcome"],  # success, api_error, network_error, cancelled, error
            registry=self.registry,
        )

        self.request_duration = Histogram(
            name="staticship_request_duration_seconds",
            documentation="API request latency",
            labelnames=["operation"],
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
            registry=self.registry,
        )

        self.upload_files = Counter(
            name="staticship_upload_files_total",
            documentation="Total files sent in deployments",
            registry=self.registry,
        )

        self.upload_bytes = Counter(
            name="staticship_upload_bytes_total",
            documentation="Total bytes sent in deployments",
            registry=self.registry,
        )

        self.validation_failures = Counter(
            name="staticship_validation_failures_total",
            documentation="Validation errors by category",
            labelnames=["category"],  # count, name, size, extension, total, processing
            registry=self.registry,
        )

        self.spa_detections = Counter(
            name="staticship_spa_detections_total",
            documentation="SPA detection outcomes",
            labelnames=["result"],  # spa, not_spa, failed
            registry=self.registry,
        )

    def track_request(self, operation: str) -> ContextManager:
        """
        Context manager timing one API request.

        Example:
            >>> with metrics.track_request("Deploy"):
            ...     response = await client.send(request)
        """
        if not self.enabled:
            return nullcontext()
        return self.request_duration.labels(operation=operation).time()

    def record_request(self, operation: str, outcome: str) -> None:
        if not self.enabled:
            return
        self.requests.labels(operation=operation, outcome=outcome).inc()

    def record_upload(self, file_count: int, total_bytes: int) -> None:
        """
        Record the payload of a deployment request.

        Args:
            file_count: Number of files in the multipart body
            total_bytes: Sum of the file sizes
        """
        if not self.enabled:
            return
        self.upload_files.inc(file_count)
        self.upload_bytes.inc(total_bytes)

    def record_validation_failure(self, category: str) -> None:
        if not self.enabled:
            return
        self.validation_failures.labels(category=category).inc()

    def record_spa_detection(self, result: str) -> None:
        if not self.enabled:
            return
        self.spa_detections.labels(result=result).inc()


# Global metrics instance (singleton)
_metrics_instance: Optional[ClientMetrics] = None


def get_metrics() -> ClientMetrics:
    """
    Get global metrics instance (singleton).

    Collection can be switched off with METRICS_ENABLED=false.
    """
    global _metrics_instance

    if _metrics_instance is None:
        enabled = os.getenv("METRICS_ENABLED", "true").lower() == "true"
        _metrics_instance = ClientMetrics(enabled=enabled)

    return _metrics_instance
