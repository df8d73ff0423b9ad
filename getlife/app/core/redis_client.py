"""
Redis connection.

Redis holds the token blacklist used by logout and user deactivation.
The client connects lazily, so the API starts even while Redis is down.
"""

import logging
import redis.asyncio as redis
from getlife.app.core.config import settings

logger = logging.getLogger("getlife")

redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """FastAPI dependency returning the shared client."""
    return redis_client


async def ping_redis() -> bool:
    """True if Redis answers, False on any connection problem."""
    try:
        return await redis_client.ping()
    except Exception as e:
        logger.warning("Redis ping failed: %s", e)
        return False


async def close_redis() -> None:
    """Release the connection pool on shutdown."""
    try:
        await redis_client.aclose()
    except Exception as e:
        logger.warning("Error closing Redis connection: %s", e)
