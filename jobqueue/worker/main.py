"""
Worker process for draining the job queue.

Wires settings, observability, Redis, the queue and a processor together,
and stops the processor gracefully on SIGTERM/SIGINT.
"""

import asyncio
import logging
import signal

from prometheus_client import start_http_server

from jobqueue.config import get_settings
from jobqueue.observability.events import ObservabilityEventSink
from jobqueue.observability.logging import setup_logging
from jobqueue.observability.metrics import setup_metrics
from jobqueue.observability.tracing import setup_tracing
from jobqueue.queue.connection import check_redis_connection, close_redis, create_redis
from jobqueue.queue.redis_queue import RedisQueue
from jobqueue.worker.handlers import JobHandler, create_default_registry
from jobqueue.worker.processor import Processor

logger = logging.getLogger(__name__)


async def run_async(handler: JobHandler | None = None) -> None:
    """
    Run a processor until a shutdown signal arrives.

    Args:
        handler: Handler for dequeued jobs. Defaults to a registry with the
            built-in echo and sleep handlers.
    """
    settings = get_settings()

    setup_logging(settings)
    setup_tracing(settings)
    metrics = setup_metrics()
    start_http_server(settings.prometheus_port)

    client = create_redis(settings)
    if not await check_redis_connection(client):
        logger.warning("Redis unreachable at startup, workers will keep retrying")

    queue = RedisQueue(
        client,
        settings.queue_name,
        key_prefix=settings.redis_key_prefix,
    )
    processor = Processor(
        queue,
        handler or create_default_registry(queue.codec),
        settings.worker_concurrency,
        dequeue_timeout=settings.worker_dequeue_timeout_seconds,
        error_backoff=settings.worker_error_backoff_seconds,
        events=ObservabilityEventSink(metrics=metrics),
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, processor.stop)

    try:
        await processor.start()
    finally:
        await close_redis(client)


def run() -> None:
    """Run the worker."""
    asyncio.run(run_async())


if __name__ == "__main__":
    run()
