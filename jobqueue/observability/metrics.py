"""
Prometheus metrics collection.
"""

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from jobqueue.constants import (
    METRIC_ACTIVE_WORKERS,
    METRIC_DEQUEUE_ERRORS,
    METRIC_IDLE_POLLS,
    METRIC_JOB_DURATION,
    METRIC_JOBS_PROCESSED,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the queue processor.

    Collects metrics for:
    - Jobs processed, by queue and outcome
    - Handler execution duration
    - Dequeue errors and idle polls
    - Active workers
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.jobs_processed = Counter(
            METRIC_JOBS_PROCESSED,
            "Total number of jobs handed to a handler",
            ["queue", "status"],
            registry=self._registry,
        )

        self.job_duration = Histogram(
            METRIC_JOB_DURATION,
            "Handler execution duration in seconds",
            ["queue", "status"],
            buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
            registry=self._registry,
        )

        self.dequeue_errors = Counter(
            METRIC_DEQUEUE_ERRORS,
            "Total number of failed dequeue attempts",
            ["queue"],
            registry=self._registry,
        )

        self.idle_polls = Counter(
            METRIC_IDLE_POLLS,
            "Total number of dequeue calls that timed out empty",
            ["queue"],
            registry=self._registry,
        )

        self.active_workers = Gauge(
            METRIC_ACTIVE_WORKERS,
            "Number of running worker loops",
            ["queue"],
            registry=self._registry,
        )

    def record_job_processed(
        self,
        queue: str,
        status: str,
        duration_seconds: float,
    ) -> None:
        """Record a handler invocation."""
        self.jobs_processed.labels(queue=queue, status=status).inc()
        self.job_duration.labels(queue=queue, status=status).observe(duration_seconds)

    def record_dequeue_error(self, queue: str) -> None:
        """Record a failed dequeue."""
        self.dequeue_errors.labels(queue=queue).inc()

    def record_idle_poll(self, queue: str) -> None:
        """Record an empty dequeue."""
        self.idle_polls.labels(queue=queue).inc()

    def worker_started(self, queue: str) -> None:
        self.active_workers.labels(queue=queue).inc()

    def worker_stopped(self, queue: str) -> None:
        self.active_workers.labels(queue=queue).dec()

    def get_metrics(self) -> bytes:
        """Get all metrics in Prometheus format."""
        return generate_latest(self._registry)


def setup_metrics() -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def get_metrics() -> MetricsCollector:
    """
    Get the metrics collector instance, creating it on first use.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    if _metrics is None:
        return setup_metrics()
    return _metrics
