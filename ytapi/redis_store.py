"""Redis connection handling and key naming for media status records."""

from __future__ import annotations

import logging

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6379
KEY_PREFIX = "media:"


class _State:
    client: redis.Redis | None = None


def media_key(download_id: str) -> str:
    """Return the Redis key that holds the status of a download."""
    return KEY_PREFIX + download_id


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep:
        return address, DEFAULT_PORT
    return host or "localhost", int(port)


async def init_redis(address: str, password: str | None = None, db: int = 0) -> redis.Redis:
    """Create the shared Redis client and check the connection.

    A failed ping is logged, not raised; the client is kept either way.
    """
    logger.info("Connecting to Redis at %s (DB: %d)", address, db)
    host, port = _split_address(address)
    client = redis.Redis(
        host=host,
        port=port,
        password=password or None,
        db=db,
        decode_responses=True,
        retry=Retry(ExponentialBackoff(cap=0.512, base=0.008), 3),
    )
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.error("Failed to connect to Redis: %s", exc)
    else:
        logger.info("Redis connected")
    _State.client = client
    return client


def get_redis_client() -> redis.Redis | None:
    """Return the client created by the last call to init_redis."""
    return _State.client