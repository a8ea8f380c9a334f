"""
Redis client initialization.

Redis holds revoked session tokens (sign-out).
"""

import logging

import redis.asyncio as redis
from fleetdesk.app.core.config import settings

logger = logging.getLogger(__name__)

redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def ping_redis() -> bool:
    try:
        return bool(await redis_client.ping())
    except redis.RedisError as exc:
        logger.warning("Redis ping failed: %s", exc)
        return False
