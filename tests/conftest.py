"""
Pytest configuration and shared fixtures.
"""

import asyncio
import logging
import os
from collections import deque
from typing import Any
from uuid import uuid4

import pytest
from prometheus_client import CollectorRegistry
from redis.exceptions import ConnectionError as RedisConnectionError

from jobqueue.config import Settings
from jobqueue.observability.events import EventSink
from jobqueue.observability.metrics import MetricsCollector
from jobqueue.queue.redis_queue import RedisQueue
from jobqueue.types.job import JobContext, JobResult

# Real Redis for integration tests - use a dedicated database
TEST_REDIS_URL = os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15")


class InMemoryRedis:
    """
    In-process stand-in for the Redis list commands the queue uses.

    Implements LPUSH, BRPOP, LLEN, DEL and PING with Redis semantics on a
    single event loop, plus failure injection for store-error tests.
    """

    def __init__(self):
        self._lists: dict[str, deque[bytes]] = {}
        self._waiters: list[asyncio.Future] = []
        self._failures = 0
        self.commands: list[str] = []

    def fail_next(self, count: int = 1) -> None:
        """Make the next count commands raise a connection error."""
        self._failures += count

    def _command(self, name: str) -> None:
        self.commands.append(name)
        if self._failures > 0:
            self._failures -= 1
            raise RedisConnectionError(f"Error 111 connecting to redis: {name} refused")

    @staticmethod
    def _key(name: str | bytes) -> str:
        return name.decode() if isinstance(name, bytes) else name

    def _wake(self) -> None:
        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_result(None)

    async def ping(self) -> bool:
        self._command("PING")
        return True

    async def lpush(self, name: str, *values: bytes | str) -> int:
        self._command("LPUSH")
        items = self._lists.setdefault(self._key(name), deque())
        for value in values:
            items.appendleft(value.encode() if isinstance(value, str) else value)
        self._wake()
        return len(items)

    async def brpop(self, keys: Any, timeout: float = 0) -> tuple[bytes, bytes] | None:
        self._command("BRPOP")
        if isinstance(keys, (str, bytes)):
            keys = [keys]
        keys = [self._key(key) for key in keys]

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout else None

        while True:
            for key in keys:
                items = self._lists.get(key)
                if items:
                    value = items.pop()
                    if not items:
                        del self._lists[key]
                    return key.encode(), value

            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                return None

            waiter = loop.create_future()
            self._waiters.append(waiter)
            try:
                await asyncio.wait_for(waiter, remaining)
            except TimeoutError:
                continue
            finally:
                self._waiters.remove(waiter)

    async def llen(self, name: str) -> int:
        self._command("LLEN")
        return len(self._lists.get(self._key(name), ()))

    async def delete(self, *names: str) -> int:
        self._command("DEL")
        removed = 0
        for name in names:
            if self._lists.pop(self._key(name), None) is not None:
                removed += 1
        return removed


class RecordingEventSink(EventSink):
    """Event sink that keeps every event for later assertions."""

    def __init__(self):
        self.events: list[tuple[str, int, dict[str, Any]]] = []

    def emit(self, event: str, level: int = logging.INFO, **fields: Any) -> None:
        self.events.append((event, level, fields))

    def names(self) -> list[str]:
        return [name for name, _, _ in self.events]

    def count(self, event: str) -> int:
        return self.names().count(event)

    def fields(self, event: str) -> list[dict[str, Any]]:
        return [fields for name, _, fields in self.events if name == event]


class RecordingHandler:
    """
    Handler that records each payload in processing order.

    Sets `done` once `expected` jobs have been seen.
    """

    def __init__(self, expected: int = 0, delay: float = 0.0):
        self.expected = expected
        self.delay = delay
        self.seen: list[bytes] = []
        self.worker_ids: list[int] = []
        self.done = asyncio.Event()

    async def handle(self, context: JobContext, data: bytes) -> JobResult:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.seen.append(data)
        self.worker_ids.append(context.worker_id)
        if len(self.seen) >= self.expected:
            self.done.set()
        return JobResult(success=True)


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    """Create an empty in-memory Redis."""
    return InMemoryRedis()


@pytest.fixture
def queue_name() -> str:
    """Generate a unique queue name."""
    return f"test-queue-{uuid4().hex[:8]}"


@pytest.fixture
def queue(fake_redis: InMemoryRedis, queue_name: str) -> RedisQueue:
    """Create a queue over the in-memory Redis."""
    return RedisQueue(fake_redis, queue_name, key_prefix="test:")


@pytest.fixture
def events() -> RecordingEventSink:
    """Create a recording event sink."""
    return RecordingEventSink()


@pytest.fixture
def metrics() -> MetricsCollector:
    """Create a metrics collector on an isolated registry."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        redis_url=TEST_REDIS_URL,
        redis_key_prefix="test:",
        log_level="DEBUG",
        log_format="console",
        worker_concurrency=2,
        worker_dequeue_timeout_seconds=0.5,
        worker_error_backoff_seconds=0.05,
    )
