"""
Queue processor: a fixed pool of asyncio workers draining a RedisQueue.

Each worker repeatedly removes the next job and hands it to the handler.
Delivery is at-most-once: a job that fails in its handler is dropped, and
nothing is ever pushed back onto the queue.
"""

import asyncio
import logging
import threading
import time
from contextlib import suppress
from datetime import UTC, datetime

from jobqueue.constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_DEQUEUE_TIMEOUT_SECONDS,
    DEFAULT_ERROR_BACKOFF_SECONDS,
    EVENT_DEQUEUE_FAILED,
    EVENT_JOB_FAILED,
    EVENT_JOB_RECEIVED,
    EVENT_JOB_SUCCEEDED,
    EVENT_PROCESSOR_STARTING,
    EVENT_PROCESSOR_STOPPED,
    EVENT_PROCESSOR_STOPPING,
    EVENT_QUEUE_IDLE,
    EVENT_WORKER_ERROR,
    EVENT_WORKER_STARTED,
    EVENT_WORKER_STOPPED,
    SPAN_HANDLE_JOB,
    ProcessorState,
)
from jobqueue.errors import ProcessorStateError, StoreError
from jobqueue.observability.events import EventSink, ObservabilityEventSink
from jobqueue.observability.tracing import get_tracer
from jobqueue.queue.redis_queue import RedisQueue
from jobqueue.types.job import JobContext, JobResult
from jobqueue.worker.handlers import JobHandler


class Processor:
    """
    Pool of workers that dispatch queued jobs to a handler.

    Lifecycle: CREATED -> RUNNING -> STOPPING -> STOPPED. A processor runs
    once; build a new one to run again.

    Shutdown is cooperative. stop() (or cancelling the task awaiting start())
    wakes idle workers immediately and lets busy workers finish their current
    job before exiting.
    """

    def __init__(
        self,
        queue: RedisQueue,
        handler: JobHandler,
        concurrency: int = DEFAULT_CONCURRENCY,
        *,
        dequeue_timeout: float = DEFAULT_DEQUEUE_TIMEOUT_SECONDS,
        error_backoff: float = DEFAULT_ERROR_BACKOFF_SECONDS,
        events: EventSink | None = None,
    ):
        """
        Initialize the processor.

        Args:
            queue: Queue to drain. Shared by all workers.
            handler: Handler invoked once per dequeued job.
            concurrency: Default worker count; values below 1 mean 1.
            dequeue_timeout: Seconds each blocking dequeue waits for a job.
            error_backoff: Seconds a worker pauses after a store error.
            events: Sink for processor events. Defaults to structured
                logging plus Prometheus metrics.
        """
        if dequeue_timeout <= 0:
            raise ValueError(f"dequeue_timeout must be positive, got {dequeue_timeout}")

        self._queue = queue
        self._handler = handler
        self._concurrency = max(1, concurrency)
        self._dequeue_timeout = dequeue_timeout
        self._error_backoff = max(0.0, error_backoff)
        self._events = events or ObservabilityEventSink()

        # Guards state, the one-time stop transition and the loop reference
        self._lock = threading.Lock()
        self._state = ProcessorState.CREATED
        self._stop_requested = False
        self._stop_event = asyncio.Event()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._in_flight = 0

    @property
    def state(self) -> ProcessorState:
        return self._state

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    @property
    def concurrency(self) -> int:
        return self._concurrency

    @property
    def in_flight(self) -> int:
        """Number of handler invocations currently running."""
        return self._in_flight

    async def start(self, concurrency: int | None = None) -> None:
        """
        Run the worker pool until it is stopped.

        Blocks until every worker has exited. Cancelling the awaiting task
        triggers the same graceful shutdown as stop(); CancelledError is
        re-raised once the workers are done.

        Args:
            concurrency: Worker count for this run. Defaults to the value
                given at construction; values below 1 mean 1.

        Raises:
            ProcessorStateError: If the processor is running, stopping, or
                has already stopped.
        """
        with self._lock:
            if self._state is not ProcessorState.CREATED:
                raise ProcessorStateError(
                    f"Processor cannot start while {self._state}",
                    state=self._state,
                )
            self._state = (
                ProcessorState.STOPPING if self._stop_requested else ProcessorState.RUNNING
            )
            self._loop = asyncio.get_running_loop()

        count = max(1, self._concurrency if concurrency is None else concurrency)
        self._events.emit(
            EVENT_PROCESSOR_STARTING,
            queue=self._queue.name,
            concurrency=count,
        )

        workers = [
            asyncio.create_task(self._worker(worker_id), name=f"jobqueue-worker-{worker_id}")
            for worker_id in range(count)
        ]

        try:
            # asyncio.wait, unlike gather, leaves the workers running if we
            # are cancelled, so in-flight handlers are not interrupted
            await asyncio.wait(workers)
        except asyncio.CancelledError:
            self._request_stop(reason="cancelled")
            await self._drain(workers)
            raise
        finally:
            with self._lock:
                self._state = ProcessorState.STOPPED
            self._events.emit(EVENT_PROCESSOR_STOPPED, queue=self._queue.name)

    async def _drain(self, workers: list[asyncio.Task]) -> None:
        """Wait for every worker to exit, absorbing repeated cancellation."""
        while not all(worker.done() for worker in workers):
            try:
                await asyncio.wait(workers)
            except asyncio.CancelledError:
                continue

    def stop(self) -> bool:
        """
        Ask every worker to exit after its current job.

        Non-blocking and idempotent; safe to call from signal handlers and
        from other threads.

        Returns:
            True if this call raised the stop signal, False if it was
            already raised.
        """
        return self._request_stop(reason="stop_called")

    def _request_stop(self, reason: str) -> bool:
        with self._lock:
            if self._stop_requested:
                return False
            self._stop_requested = True
            if self._state is ProcessorState.RUNNING:
                self._state = ProcessorState.STOPPING
            loop = self._loop

        self._events.emit(
            EVENT_PROCESSOR_STOPPING,
            queue=self._queue.name,
            reason=reason,
            in_flight=self._in_flight,
        )

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if loop is None or loop is running or loop.is_closed():
            self._stop_event.set()
        else:
            loop.call_soon_threadsafe(self._stop_event.set)
        return True

    async def _worker(self, worker_id: int) -> None:
        """Worker loop. Exits only when the stop signal is raised."""
        fields = {"worker_id": worker_id, "queue": self._queue.name}
        self._events.emit(EVENT_WORKER_STARTED, **fields)

        try:
            while not self._stop_event.is_set():
                try:
                    await self._process_one(worker_id)
                except Exception as e:
                    self._events.emit(
                        EVENT_WORKER_ERROR,
                        logging.ERROR,
                        error=str(e),
                        error_type=type(e).__name__,
                        **fields,
                    )
                    await self._backoff()
        finally:
            self._events.emit(EVENT_WORKER_STOPPED, **fields)

    async def _process_one(self, worker_id: int) -> None:
        """Run one dequeue cycle and dispatch the job it yields, if any."""
        try:
            data = await self._next_job()
        except StoreError as e:
            self._events.emit(
                EVENT_DEQUEUE_FAILED,
                logging.ERROR,
                worker_id=worker_id,
                queue=self._queue.name,
                error=e.message,
            )
            await self._backoff()
            return

        if data is None:
            if not self._stop_event.is_set():
                self._events.emit(
                    EVENT_QUEUE_IDLE,
                    logging.DEBUG,
                    worker_id=worker_id,
                    queue=self._queue.name,
                )
            return

        await self._dispatch(worker_id, data)

    async def _next_job(self) -> bytes | None:
        """
        Wait for the next job or the stop signal, whichever comes first.

        A job that Redis already handed over is returned even if the stop
        signal fired at the same moment, so it is not lost.
        """
        if self._stop_event.is_set():
            return None

        dequeue = asyncio.create_task(self._queue.dequeue(self._dequeue_timeout))
        stopped = asyncio.create_task(self._stop_event.wait())

        try:
            done, _ = await asyncio.wait(
                {dequeue, stopped},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            dequeue.cancel()
            stopped.cancel()
            raise

        stopped.cancel()
        if dequeue not in done:
            dequeue.cancel()
            await asyncio.wait({dequeue})

        if dequeue.cancelled():
            return None
        return dequeue.result()

    async def _dispatch(self, worker_id: int, data: bytes) -> None:
        """Invoke the handler exactly once for a job and report the outcome."""
        context = JobContext(
            worker_id=worker_id,
            queue_name=self._queue.name,
            dequeued_at=datetime.now(UTC),
            size_bytes=len(data),
            _stop_event=self._stop_event,
        )
        self._events.emit(
            EVENT_JOB_RECEIVED,
            worker_id=worker_id,
            queue=self._queue.name,
            size_bytes=len(data),
        )

        self._in_flight += 1
        start_time = time.perf_counter()
        try:
            with get_tracer().start_as_current_span(SPAN_HANDLE_JOB) as span:
                span.set_attribute("worker_id", worker_id)
                span.set_attribute("queue", self._queue.name)
                span.set_attribute("size_bytes", len(data))

                result = await self._invoke(context, data)

                span.set_attribute("success", result.success)
        finally:
            self._in_flight -= 1

        duration_ms = (time.perf_counter() - start_time) * 1000
        result.duration_ms = duration_ms

        if result.success:
            self._events.emit(
                EVENT_JOB_SUCCEEDED,
                worker_id=worker_id,
                queue=self._queue.name,
                duration_ms=duration_ms,
            )
        else:
            # Dropped: no retry, no requeue
            self._events.emit(
                EVENT_JOB_FAILED,
                logging.WARNING,
                worker_id=worker_id,
                queue=self._queue.name,
                duration_ms=duration_ms,
                error=result.error or "Unknown error",
            )

    async def _invoke(self, context: JobContext, data: bytes) -> JobResult:
        try:
            result = await self._handler.handle(context, data)
        except asyncio.CancelledError as e:
            # Raised by the handler itself, not by cancellation of this worker
            if asyncio.current_task().cancelling() > 0:
                raise
            return JobResult(success=False, error=f"Handler exception: CancelledError: {e}")
        except Exception as e:
            return JobResult(success=False, error=f"Handler exception: {type(e).__name__}: {e}")

        if result is None:
            return JobResult(success=True)
        if not isinstance(result, JobResult):
            return JobResult(
                success=False,
                error=f"Handler returned {type(result).__name__}, expected JobResult",
            )
        return result

    async def _backoff(self) -> None:
        """Pause after an error, waking early if the stop signal is raised."""
        if self._error_backoff <= 0:
            return
        with suppress(TimeoutError):
            await asyncio.wait_for(self._stop_event.wait(), timeout=self._error_backoff)
