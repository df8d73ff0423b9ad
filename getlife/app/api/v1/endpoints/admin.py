"""
Admin API Endpoints.

Provides admin-only user management endpoints with audit logging.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Optional
from getlife.app.db.session import get_db
from getlife.app.models.user import User
from getlife.app.models.enums import UserRole
from getlife.app.schemas.admin import (
    UserListResponse, UserListItem, UserStatusRequest,
    AdminActionResponse, AuditTrailResponse, AuditLogResponse
)
from getlife.app.core.guards import require_admin
from getlife.app.core.token_revocation import revoke_all_user_tokens, clear_user_token_revocation
from getlife.app.services.audit import log_admin_action, AuditAction, get_audit_trail

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users", response_model=UserListResponse)
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    List all users in the system (admin-only).

    Returns paginated user list with role and status information.
    """
    count_query = select(func.count(User.id))
    query = select(User)
    if role:
        count_query = count_query.where(User.role == role)
        query = query.where(User.role == role)

    total_result = await db.execute(count_query)
    total = total_result.scalar()

    offset = (page - 1) * page_size
    query = query.order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(page_size)
    result = await db.execute(query)
    users = result.scalars().all()

    return UserListResponse(
        users=[UserListItem.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size
    )


async def _get_target(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    target_user = result.scalar_one_or_none()

    if not target_user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return target_user


@router.get("/users/{user_id}", response_model=UserListItem)
async def get_user(
    user_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Get detailed information about a specific user (admin-only).
    """
    return UserListItem.model_validate(await _get_target(db, user_id))


@router.post("/users/{user_id}/deactivate", response_model=AdminActionResponse)
async def deactivate_user(
    user_id: int,
    request: UserStatusRequest,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Deactivate a user and revoke all their active tokens (admin-only).

    This immediately terminates all user sessions. It is unrelated to the
    billing block, which only stops a mitra from taking work.
    """
    target_user = await _get_target(db, user_id)

    if target_user.is_superuser or target_user.role == UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot deactivate an admin user"
        )

    if not target_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User is already inactive"
        )

    target_user.is_active = False
    await db.commit()

    await revoke_all_user_tokens(user_id)

    audit_log = await log_admin_action(
        db=db,
        admin_id=admin["user_id"],
        admin_username=admin["sub"],
        action=AuditAction.USER_DEACTIVATED,
        target_user_id=target_user.id,
        target_username=target_user.username,
        metadata={"reason": request.reason} if request.reason else None
    )

    return AdminActionResponse(
        success=True,
        message=f"User '{target_user.username}' has been deactivated",
        user_id=user_id,
        action=AuditAction.USER_DEACTIVATED,
        audit_log_id=audit_log.id
    )


@router.post("/users/{user_id}/activate", response_model=AdminActionResponse)
async def activate_user(
    user_id: int,
    request: UserStatusRequest,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Activate a user again and clear token revocations (admin-only).

    User will be able to login again and generate new tokens.
    """
    target_user = await _get_target(db, user_id)

    if target_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User is already active"
        )

    target_user.is_active = True
    await db.commit()

    await clear_user_token_revocation(user_id)

    audit_log = await log_admin_action(
        db=db,
        admin_id=admin["user_id"],
        admin_username=admin["sub"],
        action=AuditAction.USER_ACTIVATED,
        target_user_id=target_user.id,
        target_username=target_user.username,
        metadata={"reason": request.reason} if request.reason else None
    )

    return AdminActionResponse(
        success=True,
        message=f"User '{target_user.username}' has been activated",
        user_id=user_id,
        action=AuditAction.USER_ACTIVATED,
        audit_log_id=audit_log.id
    )


@router.get("/audit-logs", response_model=AuditTrailResponse)
async def get_audit_logs(
    user_id: int = Query(None, description="Filter by target user ID"),
    action: str = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=500, description="Maximum records to return"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Get audit trail with optional filtering (admin-only).

    Returns recent audit logs for security monitoring and dispute resolution.
    """
    logs = await get_audit_trail(
        db=db,
        target_user_id=user_id,
        action=action,
        limit=limit
    )

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )
