"""
Rate Limiting Module

Sliding-window rate limiting backed by Redis, with an in-memory fallback
when Redis is unavailable. Used to cap how fast reviewers can push
applications through status changes.
"""

import logging
import time

import redis.asyncio as redis
from fastapi import HTTPException, status

from app.core.config import settings

logger = logging.getLogger(__name__)

# Format: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Raised when a caller exceeds its rate limit."""

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
    client: redis.Redis,
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """Check the limit with a Redis sorted set holding one member per request."""
    now = time.time()

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, now - window_seconds)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)
    results = await pipe.execute()

    return results[1] < limit


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """Process-local fallback. Does not coordinate across server instances."""
    now = time.time()
    window = [ts for ts in _memory_store.get(key, []) if ts > now - window_seconds]

    if len(window) >= limit:
        _memory_store[key] = window
        return False

    window.append(now)
    _memory_store[key] = window
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check whether a request identified by `key` is within its limit.

    Tries Redis first and falls back to in-memory storage.

    Returns:
        True if the request is allowed, False if the limit is exceeded
    """
    client = redis.from_url(settings.redis_url, decode_responses=True)
    try:
        return await _check_rate_limit_redis(client, key, limit, window_seconds)
    except redis.RedisError as e:
        logger.warning(f"Redis unavailable for rate limiting, using memory: {e}")
    finally:
        await client.aclose()

    return _check_rate_limit_memory(key, limit, window_seconds)


__all__ = [
    "RateLimitExceeded",
    "check_rate_limit",
]
