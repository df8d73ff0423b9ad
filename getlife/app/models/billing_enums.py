"""
Billing enumerations.
"""

import enum


class TransactionType(str, enum.Enum):
    """Wallet transaction type enumeration."""
    TOPUP = "TOPUP"  # Balance credit requested with a transfer proof
    COMMISSION = "COMMISSION"  # Platform cut taken at settlement
    ADMIN_CREDIT = "ADMIN_CREDIT"  # Direct transfer by an admin


class TransactionStatus(str, enum.Enum):
    """Wallet transaction status enumeration."""
    PENDING = "PENDING"  # Waiting for admin review
    APPROVED = "APPROVED"  # Applied to the balance
    REJECTED = "REJECTED"  # Not applied
