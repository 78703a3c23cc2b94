"""
Exception types raised by the job queue.
"""

from typing import Any


class JobQueueError(Exception):
    """Base exception for all job queue errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.message = message
        self.error_code = error_code or "JOBQUEUE_ERROR"
        self.details = details or {}
        self.cause = cause

        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }


class SerializationError(JobQueueError):
    """A job payload could not be encoded."""

    def __init__(self, message: str, payload_type: str | None = None, cause: Exception | None = None):
        details = {"payload_type": payload_type} if payload_type else {}
        super().__init__(message, "SERIALIZATION_ERROR", details, cause)


class StoreError(JobQueueError):
    """The backing store failed at the transport or protocol level."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        queue: str | None = None,
        cause: Exception | None = None,
    ):
        details = {"operation": operation, "queue": queue} if operation else {}
        super().__init__(message, "STORE_ERROR", details, cause)


class ProcessorStateError(JobQueueError):
    """A processor lifecycle operation was invoked in the wrong state."""

    def __init__(self, message: str, state: str | None = None):
        details = {"state": state} if state else {}
        super().__init__(message, "PROCESSOR_STATE_ERROR", details)
