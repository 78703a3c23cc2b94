"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class ProcessorState(StrEnum):
    """
    Processor lifecycle states.

    State transitions:
    - CREATED -> RUNNING (start invoked)
    - RUNNING -> STOPPING (stop invoked or start cancelled)
    - RUNNING -> STOPPED (every worker exited)
    - STOPPING -> STOPPED (every worker exited)
    """

    CREATED = "created"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class JobOutcome(StrEnum):
    """Final outcome of one handler invocation."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


# Default values
DEFAULT_QUEUE_NAME = "jobs"
DEFAULT_KEY_PREFIX = "app:"
DEFAULT_CONCURRENCY = 1
DEFAULT_DEQUEUE_TIMEOUT_SECONDS = 5.0
DEFAULT_ERROR_BACKOFF_SECONDS = 1.0

# Metrics names
METRIC_JOBS_PROCESSED = "jobqueue_jobs_processed_total"
METRIC_JOB_DURATION = "jobqueue_job_duration_seconds"
METRIC_DEQUEUE_ERRORS = "jobqueue_dequeue_errors_total"
METRIC_IDLE_POLLS = "jobqueue_idle_polls_total"
METRIC_ACTIVE_WORKERS = "jobqueue_active_workers"

# Trace span names
SPAN_HANDLE_JOB = "handle_job"

# Processor event names
EVENT_PROCESSOR_STARTING = "processor.starting"
EVENT_PROCESSOR_STOPPING = "processor.stopping"
EVENT_PROCESSOR_STOPPED = "processor.stopped"
EVENT_WORKER_STARTED = "worker.started"
EVENT_WORKER_STOPPED = "worker.stopped"
EVENT_WORKER_ERROR = "worker.error"
EVENT_JOB_RECEIVED = "job.received"
EVENT_JOB_SUCCEEDED = "job.succeeded"
EVENT_JOB_FAILED = "job.failed"
EVENT_QUEUE_IDLE = "queue.idle"
EVENT_DEQUEUE_FAILED = "queue.dequeue_failed"
