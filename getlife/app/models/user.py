"""
User database model.

This module defines the User SQLAlchemy model for authentication and profiles.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func
from getlife.app.db.session import Base
from getlife.app.models.enums import UserRole, ProfileStatus, ServiceType


class User(Base):
    """
    User model for authentication and profile data.

    Mitras carry an expertise and must be VERIFIED before they can log in.
    Money lives on the Account model, not here.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_superuser = Column(Boolean, default=False, nullable=False)

    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False, index=True)

    # Profile
    full_name = Column(String(150), nullable=False)
    phone = Column(String(30), nullable=True)
    address = Column(String(255), nullable=True)
    status = Column(Enum(ProfileStatus), default=ProfileStatus.ACTIVE, nullable=False)
    expertise = Column(Enum(ServiceType), nullable=True)  # Mitra only

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', email='{self.email}', role='{self.role.value}')>"
