"""
Job-related type definitions.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel


class JobPayload(BaseModel):
    """
    Envelope for jobs routed by type.

    The queue itself treats payloads as opaque bytes; this shape is only
    understood by HandlerRegistry.
    """

    job_type: str
    data: dict[str, Any] = {}
    metadata: dict[str, Any] | None = None


class JobResult(BaseModel):
    """
    Result of job execution.
    Returned by job handlers after processing.
    """

    success: bool
    output: dict[str, Any] | None = None
    error: str | None = None
    duration_ms: float | None = None


@dataclass
class JobContext:
    """
    Context passed to job handlers during execution.

    Handlers may poll stop_requested to cut long work short, but are never
    interrupted by the processor.
    """

    worker_id: int
    queue_name: str
    dequeued_at: datetime
    size_bytes: int
    _stop_event: asyncio.Event = field(repr=False, compare=False)

    @property
    def stop_requested(self) -> bool:
        """Whether the owning processor has been asked to stop."""
        return self._stop_event.is_set()
