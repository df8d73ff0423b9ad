"""
Wallet Transaction database model.

Ledger of balance movements: top-up requests, settlement commissions and
admin credits.
"""

from sqlalchemy import Column, Integer, BigInteger, String, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from getlife.app.db.session import Base
from getlife.app.models.billing_enums import TransactionType, TransactionStatus


class WalletTransaction(Base):
    """
    Wallet Transaction model.

    `amount` is signed from the account holder's point of view: top-ups and
    credits are positive, commissions negative. Only APPROVED rows have been
    applied to the balance. Approved rows are never edited.
    """
    __tablename__ = "wallet_transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey('orders.id'), nullable=True, index=True)

    type = Column(Enum(TransactionType), nullable=False, index=True)
    status = Column(Enum(TransactionStatus), default=TransactionStatus.PENDING, nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    description = Column(String(255), nullable=True)
    transfer_proof = Column(String(255), nullable=True)  # Uploaded proof reference (top-ups)

    # Review
    reviewed_by_admin_id = Column(Integer, ForeignKey('users.id'), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<WalletTransaction(id={self.id}, type='{self.type.value}', status='{self.status.value}', amount={self.amount})>"
