"""
FIFO job queue stored in a Redis list.

Producers LPUSH onto the head of the list and consumers BRPOP from its
tail, so items leave in the order they arrived. Redis pops each item for
exactly one client.
"""

import logging
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from jobqueue.constants import DEFAULT_KEY_PREFIX, DEFAULT_QUEUE_NAME
from jobqueue.errors import StoreError
from jobqueue.queue.codec import JsonCodec, PayloadCodec

logger = logging.getLogger(__name__)


class RedisQueue:
    """
    Named, durable FIFO queue of opaque byte payloads.

    Safe to share between any number of concurrent producers and workers;
    the queue adds no locking of its own.
    """

    def __init__(
        self,
        client: Redis,
        name: str = DEFAULT_QUEUE_NAME,
        *,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        codec: PayloadCodec | None = None,
    ):
        """
        Initialize the queue.

        Args:
            client: Async Redis client. Must not set a socket timeout
                shorter than the longest dequeue timeout in use.
            name: Queue name, scoping one list within the keyspace.
            key_prefix: Prefix prepended to the name to form the Redis key.
            codec: Payload codec used by enqueue. Defaults to JsonCodec.
        """
        self._client = client
        self._name = name
        self._key = f"{key_prefix}{name}"
        self._codec = codec or JsonCodec()

    @property
    def name(self) -> str:
        return self._name

    @property
    def key(self) -> str:
        """The Redis key holding the list."""
        return self._key

    @property
    def codec(self) -> PayloadCodec:
        return self._codec

    async def enqueue(self, payload: Any) -> None:
        """
        Encode a payload and append it to the tail of the queue.

        Args:
            payload: Raw bytes, or any value the codec can encode.

        Raises:
            SerializationError: If the payload cannot be encoded.
            StoreError: If Redis rejects or fails the push.
        """
        data = self._codec.encode(payload)

        try:
            await self._client.lpush(self._key, data)
        except RedisError as e:
            raise StoreError(
                f"Failed to enqueue job: {e}",
                operation="enqueue",
                queue=self._name,
                cause=e,
            ) from e

    async def dequeue(self, timeout: float) -> bytes | None:
        """
        Remove and return the oldest item, waiting up to timeout seconds.

        The wait happens inside Redis, so an idle caller costs no CPU.

        Args:
            timeout: Seconds to wait for an item. Must be positive.

        Returns:
            The item, or None if nothing arrived before the timeout.

        Raises:
            ValueError: If timeout is not positive.
            StoreError: On transport or protocol failure.
        """
        if timeout <= 0:
            # BRPOP treats 0 as "block forever"
            raise ValueError(f"Dequeue timeout must be positive, got {timeout}")

        try:
            result = await self._client.brpop([self._key], timeout=timeout)
        except RedisError as e:
            raise StoreError(
                f"Failed to dequeue job: {e}",
                operation="dequeue",
                queue=self._name,
                cause=e,
            ) from e

        if not result or len(result) < 2:
            return None

        value = result[1]
        if isinstance(value, str):
            value = value.encode("utf-8")
        return value

    async def length(self) -> int:
        """
        Get the number of items not yet dequeued.

        Raises:
            StoreError: On transport or protocol failure.
        """
        try:
            return int(await self._client.llen(self._key))
        except RedisError as e:
            raise StoreError(
                f"Failed to get queue length: {e}",
                operation="length",
                queue=self._name,
                cause=e,
            ) from e

    async def clear(self) -> None:
        """
        Atomically remove every item in the queue.

        Raises:
            StoreError: On transport or protocol failure.
        """
        try:
            await self._client.delete(self._key)
        except RedisError as e:
            raise StoreError(
                f"Failed to clear queue: {e}",
                operation="clear",
                queue=self._name,
                cause=e,
            ) from e

        logger.info("Queue cleared", extra={"queue": self._name})
