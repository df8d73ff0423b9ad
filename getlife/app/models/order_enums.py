"""
Order-related enumerations.
"""

import enum


class OrderStatus(str, enum.Enum):
    """Order status enumeration (an order is one work session)."""
    AWAITING = "AWAITING"  # Created by a user, waiting for the mitra
    ACCEPTED = "ACCEPTED"  # Mitra accepted, timer not started
    IN_PROGRESS = "IN_PROGRESS"  # Mitra is working, timer running
    COMPLETED = "COMPLETED"  # Settled, cost frozen
    CANCELLED = "CANCELLED"  # Cancelled by the user before acceptance
    BLOCKED = "BLOCKED"  # Settlement drove the mitra negative, cost frozen


class ApplicationStatus(str, enum.Enum):
    """Mitra application status enumeration."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
