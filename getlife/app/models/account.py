"""
Account database model.

Holds the monetary state of a user. For a mitra this is the provider account
that settlements charge commission against.
"""

from sqlalchemy import Column, Integer, BigInteger, Boolean, ForeignKey, DateTime
from sqlalchemy.sql import func
from getlife.app.db.session import Base


class Account(Base):
    """
    Account (wallet) model.

    Invariant: outstanding_debt == max(0, -balance) after every write.
    `blocked` is set by a settlement that left the balance negative and is
    only cleared by an admin. Every balance write bumps `version`; writers
    must present the version they read (optimistic concurrency).
    """
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, unique=True, index=True)

    # Financials (whole currency units, may go negative)
    balance = Column(BigInteger, default=0, nullable=False)
    outstanding_debt = Column(BigInteger, default=0, nullable=False)

    # Suspension
    blocked = Column(Boolean, default=False, nullable=False, index=True)

    # Optimistic concurrency counter
    version = Column(Integer, default=1, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Account(user_id={self.user_id}, balance={self.balance}, blocked={self.blocked})>"
