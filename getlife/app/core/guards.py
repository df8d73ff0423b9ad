"""
Security guards for role-based access control.

Each guard wraps get_current_user and rejects callers of the wrong role
with a 403 before the endpoint runs.
"""

from typing import List
from fastapi import Depends
from getlife.app.models.enums import UserRole
from getlife.app.core.dependencies import get_current_user
from getlife.app.core.exceptions import InsufficientPermissionsError


def _role_of(current_user: dict) -> UserRole:
    try:
        return UserRole(current_user.get("role"))
    except ValueError:
        raise InsufficientPermissionsError("Invalid role in token")


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for endpoints shared by several roles.

    Usage:
        account_holder = require_role([UserRole.USER, UserRole.MITRA])

        @router.get("/wallet/transactions")
        async def list_transactions(current_user: dict = Depends(account_holder)):
            ...
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        if _role_of(current_user) not in allowed_roles:
            raise InsufficientPermissionsError(
                f"Access denied. Required role: {', '.join(r.value for r in allowed_roles)}",
                details={"role": current_user.get("role")},
            )
        return current_user

    return role_checker


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """Admin-only endpoints."""
    if _role_of(current_user) != UserRole.ADMIN:
        raise InsufficientPermissionsError("Admin access required")
    return current_user


def require_mitra(current_user: dict = Depends(get_current_user)) -> dict:
    """Service provider endpoints."""
    if _role_of(current_user) != UserRole.MITRA:
        raise InsufficientPermissionsError("Mitra access required")
    return current_user


def require_customer(current_user: dict = Depends(get_current_user)) -> dict:
    """Endpoints used by customers placing orders."""
    if _role_of(current_user) != UserRole.USER:
        raise InsufficientPermissionsError("Customer access required")
    return current_user
