"""
Integration tests against a real Redis server.

Set TEST_REDIS_URL to point at a disposable database; tests are skipped
when it is unreachable.
"""

import asyncio
import json
import time
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from redis.asyncio import Redis
from redis.exceptions import RedisError

from jobqueue.config import Settings
from jobqueue.queue.connection import check_redis_connection, close_redis, create_redis
from jobqueue.queue.redis_queue import RedisQueue
from jobqueue.worker.processor import Processor
from tests.conftest import RecordingEventSink, RecordingHandler

pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def redis_client(test_settings: Settings) -> AsyncGenerator[Redis]:
    """Create a client for the test Redis, skipping if it is down."""
    client = create_redis(test_settings)
    try:
        await client.ping()
    except (RedisError, OSError):
        await close_redis(client)
        pytest.skip(f"Redis not reachable at {test_settings.redis_url}")

    yield client

    await close_redis(client)


@pytest_asyncio.fixture
async def redis_queue(redis_client: Redis, queue_name: str) -> AsyncGenerator[RedisQueue]:
    """Create a queue on the real Redis and delete it afterwards."""
    queue = RedisQueue(redis_client, queue_name, key_prefix="test:")
    yield queue
    await queue.clear()


class TestRedisQueueIntegration:
    """Queue behaviour on a real Redis server."""

    async def test_health_check(self, redis_client: Redis):
        assert await check_redis_connection(redis_client) is True

    async def test_fifo_order(self, redis_queue: RedisQueue):
        payloads = [{"task_id": i} for i in range(10)]
        for payload in payloads:
            await redis_queue.enqueue(payload)

        assert await redis_queue.length() == 10

        received = [json.loads(await redis_queue.dequeue(timeout=1.0)) for _ in payloads]

        assert received == payloads
        assert await redis_queue.length() == 0

    async def test_idle_timeout(self, redis_queue: RedisQueue):
        start = time.monotonic()

        assert await redis_queue.dequeue(timeout=0.5) is None

        assert time.monotonic() - start >= 0.45

    async def test_clear(self, redis_queue: RedisQueue):
        await redis_queue.enqueue(b"a")
        await redis_queue.enqueue(b"b")

        await redis_queue.clear()

        assert await redis_queue.length() == 0


class TestProcessorIntegration:
    """Processor draining a real Redis list."""

    async def test_concurrent_workers_process_each_job_once(self, redis_queue: RedisQueue):
        for job_id in range(30):
            await redis_queue.enqueue({"job_id": job_id})

        handler = RecordingHandler(expected=30, delay=0.01)
        events = RecordingEventSink()
        processor = Processor(redis_queue, handler, concurrency=3, dequeue_timeout=0.5, events=events)

        task = asyncio.create_task(processor.start())
        await asyncio.wait_for(handler.done.wait(), timeout=10.0)
        processor.stop()
        await asyncio.wait_for(task, timeout=5.0)

        recorded = [json.loads(data)["job_id"] for data in handler.seen]
        assert sorted(recorded) == list(range(30))
        assert await redis_queue.length() == 0
