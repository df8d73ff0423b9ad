"""
Audit Log Database Model.

Tracks security-critical events, money movements and admin actions.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from getlife.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model for tracking security events and admin actions.

    Events logged:
    - LOGIN_SUCCESS / LOGIN_FAILED / TOKEN_REVOKED
    - USER_REGISTERED / USER_DEACTIVATED / USER_ACTIVATED
    - MITRA_APPLICATION_* decisions
    - ORDER_* lifecycle steps and SESSION_SETTLED / ACCOUNT_BLOCKED
    - TOPUP_* decisions, BALANCE_CREDITED, ACCOUNT_UNBLOCKED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(100), nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Who was the target of the action
    target_user_id = Column(Integer, index=True, nullable=True)
    target_username = Column(String(100), nullable=True)

    # Additional context
    meta_data = Column(JSON, nullable=True)

    # IP address for login tracking
    ip_address = Column(String(50), nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username}, target={self.target_username})>"
