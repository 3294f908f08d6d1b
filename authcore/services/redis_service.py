"""Redis client lifecycle for the refresh-token store."""

from typing import Optional

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from authcore.config import get_settings
from authcore.errors import StoreUnavailable

logger = structlog.get_logger(__name__)

# Global Redis client
_redis_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    """Get or create the Redis client.

    Returns:
        Connected Redis client

    Raises:
        StoreUnavailable: If Redis cannot be reached
    """
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    settings = get_settings()

    client = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.redis_timeout_seconds,
        socket_connect_timeout=settings.redis_timeout_seconds,
    )
    try:
        await client.ping()
    except RedisError as e:
        logger.error("redis_connection_failed", error=str(e))
        await client.aclose()
        raise StoreUnavailable() from e

    _redis_client = client
    logger.info("redis_connected", url=settings.redis_url.split("@")[-1])
    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("redis_connection_closed")


async def health_check() -> bool:
    """True if the cached client answers PING."""
    if _redis_client is None:
        return False
    try:
        return bool(await _redis_client.ping())
    except RedisError as e:
        logger.warning("redis_health_check_failed", error=str(e))
        return False
