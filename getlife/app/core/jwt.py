"""
Access tokens for the web and mobile clients.

Tokens are signed JWTs carrying the user's id, username and role. Every
token gets its own jti so that a single session can be revoked on logout.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from getlife.app.core.config import settings
from getlife.app.models.enums import UserRole


def create_access_token(
    user_id: int,
    username: str,
    role: UserRole,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Issue a signed access token for a user.

    Resulting payload:
        {"sub": "budi", "user_id": 12, "role": "MITRA", "jti": "4f0c...", "exp": 1767600000}
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": username,
        "user_id": user_id,
        "role": role.value,
        "jti": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify signature and expiry. Returns the claims, or None for any invalid token."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None


def seconds_until_expiry(token: str) -> int:
    """
    Remaining lifetime of a token in whole seconds.

    Unreadable tokens report the full configured lifetime so anything
    keyed on them outlives the token regardless.
    """
    full_lifetime = settings.access_token_expire_minutes * 60
    payload = decode_access_token(token)
    if not payload or "exp" not in payload:
        return full_lifetime
    remaining = int(payload["exp"] - datetime.now(timezone.utc).timestamp())
    return max(1, min(remaining, full_lifetime))
