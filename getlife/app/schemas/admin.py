"""
Admin API Schema Definitions.

Pydantic schemas for admin endpoints.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from getlife.app.models.enums import UserRole, ProfileStatus, ServiceType


class UserListItem(BaseModel):
    """Schema for user in list response."""
    id: int
    username: str
    email: str
    full_name: str
    role: UserRole
    status: ProfileStatus
    expertise: Optional[ServiceType] = None
    is_active: bool
    is_superuser: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    """Schema for list users response."""
    users: List[UserListItem]
    total: int
    page: int
    page_size: int


class UserStatusRequest(BaseModel):
    """Schema for deactivating or activating a user."""
    reason: Optional[str] = Field(None, description="Reason (for audit log)")


class AdminActionResponse(BaseModel):
    """Schema for admin action response."""
    success: bool
    message: str
    user_id: int
    action: str
    audit_log_id: int


class AuditLogResponse(BaseModel):
    """Schema for audit log entry."""
    id: int
    actor_id: Optional[int]
    actor_username: Optional[str]
    action: str
    target_user_id: Optional[int]
    target_username: Optional[str]
    meta_data: Optional[dict]
    ip_address: Optional[str]
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    """Schema for audit trail list."""
    logs: List[AuditLogResponse]
    total: int


class PlatformEarningsResponse(BaseModel):
    """Commission collected by the platform."""
    settled_orders: int
    total_billed: int
    total_commission: int
    blocked_accounts: int
    total_outstanding_debt: int
