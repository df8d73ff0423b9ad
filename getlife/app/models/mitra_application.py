"""
Mitra Application database model.

Requests from prospective service providers, reviewed by an admin.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from getlife.app.db.session import Base
from getlife.app.models.enums import ServiceType
from getlife.app.models.order_enums import ApplicationStatus


class MitraApplication(Base):
    """
    Mitra Application model.

    PENDING -> APPROVED (creates a verified mitra user) | REJECTED.
    """
    __tablename__ = "mitra_applications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    full_name = Column(String(150), nullable=False)
    phone = Column(String(30), nullable=False)
    address = Column(String(255), nullable=False)
    expertise = Column(Enum(ServiceType), nullable=False)
    reason = Column(Text, nullable=False)
    ktp_url = Column(String(255), nullable=True)  # Identity card photo

    status = Column(Enum(ApplicationStatus), default=ApplicationStatus.PENDING, nullable=False, index=True)

    # Review
    reviewed_by_admin_id = Column(Integer, ForeignKey('users.id'), nullable=True)
    mitra_user_id = Column(Integer, ForeignKey('users.id'), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<MitraApplication(id={self.id}, name='{self.full_name}', status='{self.status.value}')>"
