"""
Audit logging service for tracking security events and admin actions.

Provides centralized logging for compliance and dispute resolution.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from getlife.app.models.audit_log import AuditLog


class AuditAction:
    """Standardized audit action constants."""
    # Authentication
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    TOKEN_REVOKED = "TOKEN_REVOKED"

    # User management
    USER_REGISTERED = "USER_REGISTERED"
    USER_DEACTIVATED = "USER_DEACTIVATED"
    USER_ACTIVATED = "USER_ACTIVATED"
    PROFILE_UPDATED = "PROFILE_UPDATED"

    # Mitra onboarding
    MITRA_APPLICATION_SUBMITTED = "MITRA_APPLICATION_SUBMITTED"
    MITRA_APPLICATION_APPROVED = "MITRA_APPLICATION_APPROVED"
    MITRA_APPLICATION_REJECTED = "MITRA_APPLICATION_REJECTED"

    # Orders and work sessions
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    ORDER_ACCEPTED = "ORDER_ACCEPTED"
    SESSION_STARTED = "SESSION_STARTED"
    SESSION_SETTLED = "SESSION_SETTLED"
    ACCOUNT_BLOCKED = "ACCOUNT_BLOCKED"

    # Wallet
    TOPUP_REQUESTED = "TOPUP_REQUESTED"
    TOPUP_APPROVED = "TOPUP_APPROVED"
    TOPUP_REJECTED = "TOPUP_REJECTED"
    BALANCE_CREDITED = "BALANCE_CREDITED"
    ACCOUNT_UNBLOCKED = "ACCOUNT_UNBLOCKED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    target_user_id: Optional[int] = None,
    target_username: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    commit: bool = True
) -> AuditLog:
    """
    Log a security or admin event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_username: Username of actor
        target_user_id: ID of user being acted upon (if applicable)
        target_username: Username of target
        metadata: Additional context as JSON
        ip_address: IP address of the request
        commit: Commit immediately. Pass False to join the caller's transaction.

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        target_user_id=target_user_id,
        target_username=target_username,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    if commit:
        await db.commit()
        await db.refresh(audit_log)
    else:
        await db.flush()

    return audit_log


async def log_admin_action(
    db: AsyncSession,
    admin_id: int,
    admin_username: str,
    action: str,
    target_user_id: int,
    target_username: Optional[str],
    metadata: Optional[Dict[str, Any]] = None,
    commit: bool = True
) -> AuditLog:
    """
    Log an admin action (approve, credit, unblock, deactivate, etc.).

    Args:
        db: Database session
        admin_id: ID of admin user
        admin_username: Username of admin
        action: Action performed (use AuditAction constants)
        target_user_id: ID of user being acted upon
        target_username: Username of target
        metadata: Additional context
        commit: Commit immediately

    Returns:
        Created AuditLog instance
    """
    return await log_event(
        db=db,
        action=action,
        actor_id=admin_id,
        actor_username=admin_username,
        target_user_id=target_user_id,
        target_username=target_username,
        metadata=metadata,
        commit=commit
    )


async def log_auth_event(
    db: AsyncSession,
    action: str,
    user_id: Optional[int],
    username: Optional[str],
    ip_address: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Log an authentication event (login success/failure).

    Args:
        db: Database session
        action: AuditAction.LOGIN_SUCCESS or AuditAction.LOGIN_FAILED
        user_id: ID of user attempting login
        username: Username attempting login
        ip_address: IP address of login attempt
        metadata: Additional context (e.g., failure reason)

    Returns:
        Created AuditLog instance
    """
    return await log_event(
        db=db,
        action=action,
        actor_id=user_id,
        actor_username=username,
        ip_address=ip_address,
        metadata=metadata
    )


async def get_audit_trail(
    db: AsyncSession,
    target_user_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering.

    Returns:
        List of AuditLog instances, most recent first
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if target_user_id:
        query = query.where(AuditLog.target_user_id == target_user_id)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return result.scalars().all()
