"""
Prometheus metrics for upload runs.

Tracks upload success/failure counts, uploaded bytes, per-file upload latency
and OSS API errors. Metrics live in the process registry so a wrapper script
(or a long-running job that imports the uploader) can expose them with
`prometheus_client.start_http_server`.

Metrics Provided:
    - oss_upload_requests_total: Counter for upload operations by status
    - oss_upload_bytes_total: Counter for uploaded bytes
    - oss_upload_duration_seconds: Histogram for per-file upload latency
    - oss_api_errors_total: Counter for OSS API errors

Usage:
    from oss_uploader.utils.metrics import get_metrics

    metrics = get_metrics()
    with metrics.track_upload():
        client.put(key, path)
    metrics.record_upload_success(bytes_uploaded=1024)
"""

import os
from contextlib import nullcontext
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

from oss_uploader.utils.logging import get_logger

logger = get_logger(__name__)


class UploadMetrics:
    """
    Centralized Prometheus collectors for the uploader.

    Example:
        >>> metrics = UploadMetrics(registry=CollectorRegistry())
        >>> metrics.record_upload_success(bytes_uploaded=2048)
    """

    def __init__(self, enabled: bool = True, registry: Optional[CollectorRegistry] = None) -> None:
        """
        Initialize metrics collectors.

        Args:
            enabled: Whether metrics collection is enabled
            registry: Custom Prometheus registry (uses default if None)
        """
        self.enabled = enabled
        self.registry = registry if registry is not None else REGISTRY

        if not self.enabled:
            logger.debug("Metrics collection disabled")
            return

        self.upload_requests = Counter(
            name="oss_upload_requests_total",
            documentation="Total number of file uploads",
            labelnames=["status"],  # success, failure
            registry=self.registry,
        )

        self.upload_bytes = Counter(
            name="oss_upload_bytes_total",
            documentation="Total bytes uploaded to OSS",
            registry=self.registry,
        )

        self.upload_duration = Histogram(
            name="oss_upload_duration_seconds",
            documentation="Time spent uploading a single file",
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
            registry=self.registry,
        )

        self.api_errors = Counter(
            name="oss_api_errors_total",
            documentation="Total OSS API errors",
            labelnames=["operation", "error_type"],  # operation: put/head/list/delete/info
            registry=self.registry,
        )

    def track_upload(self):
        """
        Context manager timing one upload.

        Example:
            >>> with metrics.track_upload():
            ...     client.put(key, path)
        """
        if not self.enabled:
            return nullcontext()
        return self.upload_duration.time()

    def record_upload_success(self, bytes_uploaded: int) -> None:
        """Record a successful upload of `bytes_uploaded` bytes."""
        if not self.enabled:
            return
        self.upload_requests.labels(status="success").inc()
        self.upload_bytes.inc(bytes_uploaded)

    def record_upload_failure(self) -> None:
        """Record a failed upload."""
        if not self.enabled:
            return
        self.upload_requests.labels(status="failure").inc()

    def record_api_error(self, operation: str, error_type: str) -> None:
        """
        Record OSS API error.

        Args:
            operation: OSS operation (put, head, list, delete, info)
            error_type: Exception class name or OSS error code
        """
        if not self.enabled:
            return
        self.api_errors.labels(operation=operation, error_type=error_type).inc()


_metrics_instance: Optional[UploadMetrics] = None


def get_metrics() -> UploadMetrics:
    """
    Get global metrics instance (singleton).

    Collection is on unless METRICS_ENABLED=false.
    """
    global _metrics_instance
    if _metrics_instance is None:
        enabled = os.getenv("METRICS_ENABLED", "true").lower() == "true"
        _metrics_instance = UploadMetrics(enabled=enabled)
    return _metrics_instance
