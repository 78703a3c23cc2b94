"""
Event sinks for the queue processor.

The processor never logs directly; it emits named events with structured
fields to an EventSink handed to it at construction time.
"""

import logging
from typing import Any

import structlog

from jobqueue.constants import (
    EVENT_DEQUEUE_FAILED,
    EVENT_JOB_FAILED,
    EVENT_JOB_SUCCEEDED,
    EVENT_QUEUE_IDLE,
    EVENT_WORKER_STARTED,
    EVENT_WORKER_STOPPED,
    JobOutcome,
)
from jobqueue.observability.logging import get_logger
from jobqueue.observability.metrics import MetricsCollector, get_metrics


class EventSink:
    """Receives processor events. The base implementation drops them."""

    def emit(self, event: str, level: int = logging.INFO, **fields: Any) -> None:
        """
        Record one event.

        Args:
            event: Event name, one of the EVENT_* constants.
            level: Standard library log level for the event.
            **fields: Structured event fields.
        """


class ObservabilityEventSink(EventSink):
    """
    Event sink that writes structured logs and updates Prometheus metrics.
    """

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the sink.

        Args:
            logger: Logger to write to. Defaults to the processor logger.
            metrics: Metrics collector. Defaults to the global collector.
        """
        self._logger = logger or get_logger("jobqueue.worker.processor")
        self._metrics = metrics or get_metrics()

    def emit(self, event: str, level: int = logging.INFO, **fields: Any) -> None:
        self._logger.log(level, event, **fields)
        self._record_metrics(event, fields)

    def _record_metrics(self, event: str, fields: dict[str, Any]) -> None:
        queue = fields.get("queue", "")

        if event == EVENT_JOB_SUCCEEDED:
            self._metrics.record_job_processed(
                queue, JobOutcome.SUCCEEDED, fields.get("duration_ms", 0.0) / 1000
            )
        elif event == EVENT_JOB_FAILED:
            self._metrics.record_job_processed(
                queue, JobOutcome.FAILED, fields.get("duration_ms", 0.0) / 1000
            )
        elif event == EVENT_DEQUEUE_FAILED:
            self._metrics.record_dequeue_error(queue)
        elif event == EVENT_QUEUE_IDLE:
            self._metrics.record_idle_poll(queue)
        elif event == EVENT_WORKER_STARTED:
            self._metrics.worker_started(queue)
        elif event == EVENT_WORKER_STOPPED:
            self._metrics.worker_stopped(queue)
