"""
Redis Configuration

Shared async Redis client, used by the rate limiter.
"""

from redis.asyncio import Redis, from_url

from rentalcert.core.config import settings

redis_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Initialize the Redis connection.

    Call this on application startup.
    """
    global redis_client
    redis_client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await redis_client.ping()
    return redis_client


async def get_redis() -> Redis | None:
    """Return the shared client, or None when Redis was not initialized."""
    return redis_client


async def close_redis() -> None:
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
