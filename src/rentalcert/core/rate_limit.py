"""
Rate Limiting Module

Sliding-window rate limiting backed by Redis sorted sets, falling back to an
in-process store when Redis is not connected.

Used on the public certificate verification endpoint, which is reachable
without authentication and would otherwise allow enumeration of tokens.
"""

import logging
import time

from fastapi import HTTPException, Request, status
from redis.asyncio import Redis
from redis.exceptions import RedisError

from rentalcert.core import redis as redis_state
from rentalcert.core.config import settings

logger = logging.getLogger(__name__)

# Fallback storage: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(
    client: Redis,
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using Redis.

    Old entries are trimmed, the window is counted, and the current request
    is recorded in a single pipeline.

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, window_start)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _evict_idle_keys(window_start: float) -> None:
    """Drop keys whose hits have all left the window."""
    idle = [key for key, hits in _memory_store.items() if not hits or hits[-1] <= window_start]
    for key in idle:
        del _memory_store[key]


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check rate limit using in-memory storage.

    Not shared across server instances.
    """
    now = time.time()
    window_start = now - window_seconds
    _evict_idle_keys(window_start)

    hits = [ts for ts in _memory_store.get(key, []) if ts > window_start]

    if len(hits) >= limit:
        _memory_store[key] = hits
        return False

    hits.append(now)
    _memory_store[key] = hits
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check if a request is within rate limits.

    Tries Redis first, falls back to in-memory storage.

    Args:
        key: Unique key for this rate limit (e.g., "verify:203.0.113.7")
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    client = redis_state.redis_client

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except RedisError as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


async def limit_public_verification(request: Request) -> None:
    """
    FastAPI dependency limiting verification lookups per client IP.

    Raises:
        RateLimitExceeded: When the caller exceeded the configured limit
    """
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:verify:{client_ip}"
    limit = settings.verify_rate_limit
    window = settings.verify_rate_limit_window_seconds

    if not await check_rate_limit(key, limit, window):
        logger.warning(f"Rate limit exceeded for {key}: {limit}/{window}s")
        raise RateLimitExceeded(limit, window)


__all__ = [
    "RateLimitExceeded",
    "check_rate_limit",
    "limit_public_verification",
]
