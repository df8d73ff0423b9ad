"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication and profile endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from getlife.app.models.enums import UserRole, ProfileStatus, ServiceType


class UserRegister(BaseModel):
    """
    Schema for customer registration.

    Used by POST /auth/register. Mitras join through an application instead.
    """
    email: EmailStr = Field(..., description="User email address")
    username: str = Field(..., min_length=3, max_length=50, description="Unique username")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    full_name: str = Field(..., min_length=1, max_length=150, description="Display name")
    phone: Optional[str] = Field(default=None, max_length=30)
    address: Optional[str] = Field(default=None, max_length=255)


class UserLogin(BaseModel):
    """
    Schema for user login.

    Supports login with either username or email.
    """
    username: str = Field(..., description="Username or email")
    password: str = Field(..., description="Password")


class TokenResponse(BaseModel):
    """
    Schema for JWT token response.

    Returned by successful login/register operations.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    email: str = Field(..., description="Email address")
    role: UserRole = Field(..., description="User role")


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    phone: Optional[str] = Field(default=None, max_length=30)
    address: Optional[str] = Field(default=None, max_length=255)


class UserResponse(BaseModel):
    """
    Schema for user information response.

    Used by GET /auth/me and the admin user endpoints.
    """
    id: int
    email: str
    username: str
    role: UserRole
    full_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    status: ProfileStatus
    expertise: Optional[ServiceType] = None
    is_active: bool
    is_superuser: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
