"""
Redis Configuration

Async Redis client used for short-lived settlement locks. Redis is an
optional dependency: when it is unavailable the lock helpers report that no
lock could be taken and callers fall back to database-level guarantees.
"""

import logging
import secrets

from fastapi import FastAPI, Request
from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from edubridge.core.config import settings

logger = logging.getLogger(__name__)

# Deletes the key only if it still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


async def init_redis(app: FastAPI) -> Redis:
    """
    Initialize Redis connection.

    Call this on application startup.
    """
    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    app.state.redis = client
    # Test connection
    await client.ping()
    return client


async def get_redis(request: Request) -> Redis | None:
    """
    Get Redis client instance.

    Returns None if Redis is not available (optional dependency).
    """
    return getattr(request.app.state, "redis", None)


async def close_redis(app: FastAPI) -> None:
    """Close Redis connection."""
    client: Redis | None = getattr(app.state, "redis", None)
    if client:
        await client.aclose()
        app.state.redis = None


async def acquire_lock(redis: Redis | None, key: str, ttl_seconds: int) -> str | None:
    """
    Try to take a lock.

    Returns:
        The lock token if the lock was taken, "" if Redis is unavailable
        (caller proceeds unlocked), or None if another holder owns the lock.
    """
    if redis is None:
        return ""

    token = secrets.token_hex(16)
    try:
        acquired = await redis.set(key, token, nx=True, ex=ttl_seconds)
    except RedisError as e:
        logger.warning(f"Redis unavailable for lock {key}, continuing without it: {e}")
        return ""

    return token if acquired else None


async def release_lock(redis: Redis | None, key: str, token: str) -> None:
    """Release a lock taken by acquire_lock. No-op for unlocked sections."""
    if redis is None or not token:
        return

    try:
        await redis.eval(_RELEASE_SCRIPT, 1, key, token)
    except RedisError as e:
        # The key expires on its own
        logger.warning(f"Failed to release lock {key}: {e}")
