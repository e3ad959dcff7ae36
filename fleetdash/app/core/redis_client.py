"""
Redis client initialization and connection management.

Redis carries the change feed: every committed write is published on a
per-table channel and relayed to WebSocket subscribers.
"""

import redis.asyncio as redis
from fleetdash.app.core.config import settings


# Create async Redis client
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """
    Get Redis client instance.

    Used as a FastAPI dependency so tests can swap the client.
    """
    return redis_client


async def ping_redis() -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await redis_client.ping()
    except Exception:
        return False


async def close_redis() -> None:
    await redis_client.aclose()
