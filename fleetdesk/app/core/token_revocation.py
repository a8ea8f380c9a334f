"""
Session revocation using Redis.

Signing out blacklists the presented JWT until it would have expired anyway.
"""

import logging

from redis.exceptions import RedisError

from fleetdesk.app.core import redis_client as redis_module
from fleetdesk.app.core.config import settings

logger = logging.getLogger(__name__)

TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Revoke a JWT by adding it to the blacklist.

    Returns:
        True if stored, False when Redis is unreachable
    """
    try:
        await redis_module.redis_client.setex(
            f"{TOKEN_BLACKLIST_PREFIX}{token}",
            settings.access_token_expire_minutes * 60,
            str(user_id),
        )
        return True
    except RedisError as exc:
        logger.error("Could not revoke token for user %s: %s", user_id, exc)
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check whether a token has been revoked.

    Fails open when Redis is down: the token signature and expiry still apply.
    """
    try:
        return await redis_module.redis_client.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}") > 0
    except RedisError as exc:
        logger.warning("Token revocation check skipped: %s", exc)
        return False
