"""
Redis connection management.

Clients are created explicitly and handed to RedisQueue; nothing here keeps
a process-wide client.
"""

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from jobqueue.config import Settings, get_settings

logger = logging.getLogger(__name__)


def create_redis(settings: Settings | None = None) -> Redis:
    """
    Create an async Redis client for the queue.

    The client returns bytes and has no socket read timeout, so a BRPOP may
    block for the full dequeue timeout without the socket giving up first.

    Args:
        settings: Settings to use. Defaults to the cached settings.

    Returns:
        Redis: A client backed by its own connection pool.
    """
    settings = settings or get_settings()

    # Every blocked BRPOP holds a pooled connection
    max_connections = max(settings.redis_max_connections, settings.worker_concurrency + 2)

    client = Redis.from_url(
        settings.redis_url,
        decode_responses=False,
        max_connections=max_connections,
        socket_connect_timeout=settings.redis_socket_connect_timeout_seconds,
        socket_timeout=None,
        socket_keepalive=True,
        health_check_interval=30,
    )
    logger.info("Redis client created", extra={"max_connections": max_connections})
    return client


async def check_redis_connection(client: Redis) -> bool:
    """
    Check if Redis is reachable.

    Returns:
        True if Redis responds to PING, False otherwise.
    """
    try:
        return bool(await client.ping())
    except RedisError as e:
        logger.error("Redis health check failed", extra={"error": str(e)})
        return False


async def close_redis(client: Redis) -> None:
    """Close the client and release its pooled connections."""
    await client.aclose()
    logger.info("Redis client closed")
