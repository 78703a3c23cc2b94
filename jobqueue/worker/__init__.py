"""
Worker module.
Contains the queue processor, job handlers and the worker entry point.
"""

from jobqueue.worker.handlers import (
    HandlerRegistry,
    JobHandler,
    LogJobHandler,
    create_default_registry,
)
from jobqueue.worker.processor import Processor

__all__ = [
    "Processor",
    "JobHandler",
    "LogJobHandler",
    "HandlerRegistry",
    "create_default_registry",
]
