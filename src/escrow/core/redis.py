"""Shared Redis client for cross-process rate limiting.

Redis is optional. Without REDIS_URL, or while the server is unreachable,
get_redis() returns None and the limiter counts in process memory instead.
"""

import time

from redis.asyncio import Redis
from redis.exceptions import RedisError

from src.escrow.core.config import get_settings
from src.escrow.core.logging import get_logger

logger = get_logger(__name__)

# Seconds to wait before reconnecting after a failed attempt
RECONNECT_AFTER_SECONDS = 30.0

_client: Redis | None = None
_reconnect_at: float = 0.0


async def get_redis() -> Redis | None:
    """Return the connected client, or None when Redis is unconfigured or down."""
    global _client, _reconnect_at

    if _client is not None:
        return _client

    settings = get_settings()
    if not settings.redis_url or time.monotonic() < _reconnect_at:
        return None

    client = Redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_pool_size,
        decode_responses=True,
    )
    try:
        await client.ping()  # type: ignore[misc]
    except (RedisError, OSError) as e:
        await client.aclose()
        _reconnect_at = time.monotonic() + RECONNECT_AFTER_SECONDS
        logger.warning(
            "Redis unavailable, rate limits counted in process",
            error=str(e),
            retry_in_seconds=RECONNECT_AFTER_SECONDS,
        )
        return None

    _client = client
    logger.info("Redis connected")
    return _client


async def close_redis() -> None:
    """Close the client on shutdown and forget any failed attempt."""
    global _client, _reconnect_at

    if _client is not None:
        await _client.aclose()
        logger.info("Redis connection closed")
    _client = None
    _reconnect_at = 0.0
