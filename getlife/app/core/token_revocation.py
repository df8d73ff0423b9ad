"""
Token revocation backed by Redis.

Two kinds of entries exist:
- a per-token entry keyed by the token's jti, written on logout
- a per-user flag, written when an admin deactivates the user

Both expire once every token they could cover has expired on its own.
"""

import logging
from typing import Optional
from getlife.app.core import redis_client as redis_module
from getlife.app.core.config import settings
from getlife.app.core.jwt import decode_access_token, seconds_until_expiry

logger = logging.getLogger("getlife")

TOKEN_BLACKLIST_PREFIX = "blacklist:jti:"
USER_TOKENS_PREFIX = "user:tokens:"


def _token_key(token_id: str) -> str:
    return f"{TOKEN_BLACKLIST_PREFIX}{token_id}"


def _user_key(user_id: int) -> str:
    return f"{USER_TOKENS_PREFIX}{user_id}:revoked"


def token_id(token: str, payload: Optional[dict] = None) -> str:
    """The jti of a token, or the raw token for tokens issued without one."""
    payload = payload if payload is not None else decode_access_token(token)
    if payload and payload.get("jti"):
        return payload["jti"]
    return token


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Blacklist one token until it would have expired anyway.

    Returns:
        True if the entry was written, False if Redis failed
    """
    try:
        await redis_module.redis_client.setex(
            _token_key(token_id(token)), seconds_until_expiry(token), str(user_id)
        )
        return True
    except Exception as e:
        logger.error("Error revoking token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(token: str, payload: Optional[dict] = None) -> bool:
    """
    Check the blacklist for a token.

    Fails open when Redis is unreachable.
    """
    try:
        exists = await redis_module.redis_client.exists(_token_key(token_id(token, payload)))
        return exists > 0
    except Exception as e:
        logger.error("Error checking token revocation: %s", e)
        return False


async def revoke_all_user_tokens(user_id: int) -> bool:
    """Flag every token of a user as revoked. Used on deactivation."""
    try:
        ttl_seconds = settings.access_token_expire_minutes * 60
        await redis_module.redis_client.setex(_user_key(user_id), ttl_seconds, "1")
        return True
    except Exception as e:
        logger.error("Error revoking all tokens for user %s: %s", user_id, e)
        return False


async def are_user_tokens_revoked(user_id: int) -> bool:
    try:
        exists = await redis_module.redis_client.exists(_user_key(user_id))
        return exists > 0
    except Exception as e:
        logger.error("Error checking user token revocation: %s", e)
        return False


async def clear_user_token_revocation(user_id: int) -> bool:
    """Remove the per-user flag when a deactivated user is activated again."""
    try:
        await redis_module.redis_client.delete(_user_key(user_id))
        return True
    except Exception as e:
        logger.error("Error clearing token revocation for user %s: %s", user_id, e)
        return False
