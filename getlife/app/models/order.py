"""
Order database model.

An order is one unit of work a mitra performs for a user. While the mitra
works, the order doubles as the durable record of the work session.
"""

from sqlalchemy import Column, Integer, BigInteger, String, ForeignKey, DateTime, Enum, Index, text
from sqlalchemy.sql import func
from getlife.app.db.session import Base
from getlife.app.models.enums import ServiceType
from getlife.app.models.order_enums import OrderStatus


class Order(Base):
    """
    Order model.

    Lifecycle: AWAITING -> ACCEPTED -> IN_PROGRESS -> COMPLETED | BLOCKED,
    or AWAITING -> CANCELLED. Once COMPLETED or BLOCKED, elapsed_seconds
    and the amounts are frozen.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Parties
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    mitra_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Request
    service_type = Column(Enum(ServiceType), nullable=False)
    user_address = Column(String(255), nullable=False)

    # Status
    status = Column(Enum(OrderStatus), default=OrderStatus.AWAITING, nullable=False, index=True)

    # Work session
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    elapsed_seconds = Column(Integer, nullable=True)

    # Financials (set at settlement)
    total_amount = Column(BigInteger, nullable=True)  # billable amount
    admin_fee = Column(BigInteger, nullable=True)  # platform commission
    mitra_earnings = Column(BigInteger, nullable=True)  # total - fee

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # At most one running work session per mitra
    __table_args__ = (
        Index('uq_orders_running_session', 'mitra_id', unique=True,
              postgresql_where=text("status = 'IN_PROGRESS'"),
              sqlite_where=text("status = 'IN_PROGRESS'")),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, status='{self.status.value}', mitra={self.mitra_id}, total={self.total_amount})>"
