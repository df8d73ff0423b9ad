"""
User and profile enumerations.

Defines the role types and profile states for the GetLife marketplace.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Platform operator; approves mitras and top-ups
        USER: End-user ordering services (default role)
        MITRA: Service provider working orders on the clock
    """
    ADMIN = "ADMIN"
    USER = "USER"
    MITRA = "MITRA"


class ProfileStatus(str, enum.Enum):
    """Profile status enumeration."""
    ACTIVE = "ACTIVE"  # Regular end-user profile
    VERIFIED = "VERIFIED"  # Mitra approved by an admin
    PENDING = "PENDING"  # Mitra not yet verified


class ServiceType(str, enum.Enum):
    """Service categories offered on the marketplace."""
    GET_CLEAN = "GetClean"
    GET_MASSAGE = "GetMassage"
    GET_BARBER = "GetBarber"
