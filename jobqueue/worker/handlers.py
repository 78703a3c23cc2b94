"""
Job handlers.

A handler receives the execution context and the raw job bytes and reports
success or failure through a JobResult. Failed jobs are dropped by the
processor, never retried.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from pydantic import ValidationError

from jobqueue.queue.codec import JsonCodec, PayloadCodec
from jobqueue.types.job import JobContext, JobPayload, JobResult

logger = logging.getLogger(__name__)


class JobHandler(Protocol):
    """Capability that executes one job's payload."""

    async def handle(self, context: JobContext, data: bytes) -> JobResult: ...


class LogJobHandler:
    """
    Handler that only logs the payload.

    Used when the owning process supplies nothing better.
    """

    def __init__(self, work_seconds: float = 0.1):
        """
        Args:
            work_seconds: Simulated processing time per job.
        """
        self.work_seconds = work_seconds

    async def handle(self, context: JobContext, data: bytes) -> JobResult:
        logger.info(
            "Handling job",
            extra={
                "worker_id": context.worker_id,
                "data": data.decode("utf-8", errors="replace"),
            },
        )
        if self.work_seconds > 0:
            await asyncio.sleep(self.work_seconds)
        return JobResult(success=True)


# Type alias for typed job handler functions
TypedJobHandler = Callable[[JobContext, JobPayload], Awaitable[JobResult]]


class HandlerRegistry:
    """
    Handler that routes JSON envelopes to functions by job type.

    Payloads must decode to JobPayload, i.e. {"job_type": ..., "data": {...}}.

    Example:
        registry = HandlerRegistry()

        @registry.register("send_email")
        async def handle_send_email(context: JobContext, payload: JobPayload) -> JobResult:
            ...
    """

    def __init__(self, codec: PayloadCodec | None = None):
        self._codec = codec or JsonCodec()
        self._handlers: dict[str, TypedJobHandler] = {}

    def register(self, job_type: str) -> Callable[[TypedJobHandler], TypedJobHandler]:
        """
        Decorator to register a handler function for a job type.

        Args:
            job_type: The job type this handler processes.

        Returns:
            Decorator function.
        """
        def decorator(handler: TypedJobHandler) -> TypedJobHandler:
            self._handlers[job_type] = handler
            logger.info(f"Registered handler for job type: {job_type}")
            return handler
        return decorator

    def get(self, job_type: str) -> TypedJobHandler | None:
        """Get the handler for a job type, or None if not registered."""
        return self._handlers.get(job_type)

    def job_types(self) -> list[str]:
        """List all registered job types."""
        return list(self._handlers.keys())

    async def handle(self, context: JobContext, data: bytes) -> JobResult:
        try:
            payload = self._codec.decode(data, JobPayload)
        except ValidationError as e:
            logger.error("Undecodable job payload", extra={"worker_id": context.worker_id})
            return JobResult(success=False, error=f"Invalid job payload: {e}")

        handler = self.get(payload.job_type)

        if handler is None:
            logger.error(
                f"No handler for job type: {payload.job_type}",
                extra={"worker_id": context.worker_id},
            )
            return JobResult(
                success=False,
                error=f"No handler registered for job type: {payload.job_type}",
            )

        try:
            return await handler(context, payload)
        except Exception as e:
            logger.exception(
                "Handler raised exception",
                extra={"job_type": payload.job_type, "error": str(e)},
            )
            return JobResult(success=False, error=f"Handler exception: {e}")


# ============================================================================
# Built-in job handlers
# ============================================================================


async def handle_echo(context: JobContext, payload: JobPayload) -> JobResult:
    """Return the input data as output."""
    logger.info("Echo job executing", extra={"worker_id": context.worker_id})
    return JobResult(success=True, output={"echo": payload.data})


async def handle_sleep(context: JobContext, payload: JobPayload) -> JobResult:
    """
    Sleep for data["duration_seconds"], stopping early if shutdown begins.
    """
    duration = float(payload.data.get("duration_seconds", 1))
    elapsed = 0.0

    while elapsed < duration and not context.stop_requested:
        step = min(0.1, duration - elapsed)
        await asyncio.sleep(step)
        elapsed += step

    return JobResult(success=True, output={"slept_for": round(elapsed, 3)})


def create_default_registry(codec: PayloadCodec | None = None) -> HandlerRegistry:
    """Create a registry with the built-in echo and sleep handlers."""
    registry = HandlerRegistry(codec)
    registry.register("echo")(handle_echo)
    registry.register("sleep")(handle_sleep)
    return registry
