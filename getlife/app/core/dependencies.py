"""
Authentication dependencies for FastAPI.

get_current_user resolves the bearer token to the caller's claims. The
role returned is the one stored in the database, so a role or status
change takes effect on the next request rather than at token expiry.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from getlife.app.core.jwt import decode_access_token
from getlife.app.core.token_revocation import is_token_revoked, are_user_tokens_revoked
from getlife.app.db.session import get_db
from getlife.app.models.user import User

security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Authenticate the request.

    Checks, in order: signature and expiry, the per-token blacklist
    (logout), the per-user revocation flag (deactivation) and finally
    the user row itself.

    Returns:
        Token claims: sub, user_id, role, jti, exp

    Raises:
        HTTPException: 401 for invalid or revoked tokens, 403 for inactive users
    """
    token = credentials.credentials

    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    if await is_token_revoked(token, payload):
        raise _unauthorized("Token has been revoked")

    if await are_user_tokens_revoked(user_id):
        raise _unauthorized("User access has been revoked")

    user = await db.get(User, user_id)
    if not user:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    payload["role"] = user.role.value
    return payload
