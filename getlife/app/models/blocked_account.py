"""
Blocked Account database model.

History of account suspensions caused by negative settlements.
"""

from sqlalchemy import Column, Integer, BigInteger, String, ForeignKey, DateTime
from sqlalchemy.sql import func
from getlife.app.db.session import Base


class BlockedAccount(Base):
    """
    Blocked Account record.

    One open row (unblocked_at IS NULL) per currently blocked account.
    Closed by the admin who clears the block.
    """
    __tablename__ = "blocked_accounts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey('orders.id'), nullable=True)

    reason = Column(String(255), nullable=False)
    debt_amount = Column(BigInteger, nullable=False)

    blocked_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    unblocked_at = Column(DateTime(timezone=True), nullable=True)
    unblocked_by_admin_id = Column(Integer, ForeignKey('users.id'), nullable=True)

    def __repr__(self):
        return f"<BlockedAccount(user_id={self.user_id}, debt={self.debt_amount}, open={self.unblocked_at is None})>"
