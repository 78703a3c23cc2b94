"""
Type definitions for the job queue.
"""

from jobqueue.types.job import (
    JobContext,
    JobPayload,
    JobResult,
)

__all__ = [
    "JobPayload",
    "JobResult",
    "JobContext",
]
