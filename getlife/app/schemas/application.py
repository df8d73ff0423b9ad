"""
Mitra Application Schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from getlife.app.models.enums import ServiceType
from getlife.app.models.order_enums import ApplicationStatus


class ApplicationCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=150)
    phone: str = Field(..., min_length=1, max_length=30)
    address: str = Field(..., min_length=1, max_length=255)
    expertise: ServiceType
    reason: str = Field(..., min_length=1)
    ktp_url: Optional[str] = Field(default=None, max_length=255, description="Identity card photo")


class ApplicationResponse(BaseModel):
    id: int
    full_name: str
    phone: str
    address: str
    expertise: ServiceType
    reason: str
    ktp_url: Optional[str] = None
    status: ApplicationStatus
    reviewed_by_admin_id: Optional[int] = None
    mitra_user_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ApplicationApprove(BaseModel):
    """Login credentials the admin issues to the new mitra."""
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
