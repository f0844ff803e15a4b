# ruff: noqa: PLW0603
"""Redis connection management.

Provides the async Redis client used as a cache for content-access decisions.
The application runs without Redis; callers receive None from get_redis().
"""

import redis.asyncio as redis

from edumarket.config import get_settings
from edumarket.core.logging import get_logger


logger = get_logger(__name__)

_redis_client: redis.Redis | None = None


async def init_redis() -> redis.Redis:
    """Initialize Redis connection pool."""
    global _redis_client

    settings = get_settings()

    _redis_client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        retry_on_timeout=settings.redis_retry_on_timeout,
        health_check_interval=settings.redis_health_check_interval,
        decode_responses=True,
    )

    try:
        await _redis_client.ping()
        logger.info("redis_connected", url=settings.redis_url)
    except redis.ConnectionError as e:
        logger.warning("redis_connection_failed", error=str(e))
        _redis_client = None
        raise

    return _redis_client


async def shutdown_redis() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client:
        await _redis_client.aclose()
        logger.info("redis_disconnected")
        _redis_client = None


def get_redis() -> redis.Redis | None:
    """Get Redis client instance."""
    return _redis_client


def access_cache_key(user_id: str, course_id: str) -> str:
    """Cache key for a user's access decision on a course."""
    return f"access:{user_id}:{course_id}"


def access_generation_key(user_id: str, course_id: str) -> str:
    """Counter bumped on every invalidation of a user's access to a course."""
    return f"access-gen:{user_id}:{course_id}"
