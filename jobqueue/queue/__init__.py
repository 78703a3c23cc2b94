"""
Queue module.
Contains the Redis-backed FIFO queue, payload codec and client helpers.
"""

from jobqueue.queue.codec import JsonCodec, PayloadCodec
from jobqueue.queue.connection import check_redis_connection, close_redis, create_redis
from jobqueue.queue.redis_queue import RedisQueue

__all__ = [
    "RedisQueue",
    "JsonCodec",
    "PayloadCodec",
    "create_redis",
    "check_redis_connection",
    "close_redis",
]
