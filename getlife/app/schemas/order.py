"""
Order and Work Session Schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from getlife.app.models.enums import ServiceType
from getlife.app.models.order_enums import OrderStatus


class MitraSummary(BaseModel):
    """Public view of a mitra a user can book."""
    id: int
    full_name: str
    expertise: Optional[ServiceType] = None
    phone: Optional[str] = None

    class Config:
        from_attributes = True


class OrderCreate(BaseModel):
    service_type: ServiceType
    mitra_id: int
    user_address: str = Field(..., min_length=1, max_length=255)


class OrderResponse(BaseModel):
    id: int
    user_id: int
    mitra_id: int
    service_type: ServiceType
    user_address: str
    status: OrderStatus
    accepted_at: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    elapsed_seconds: Optional[int] = None
    total_amount: Optional[int] = None
    admin_fee: Optional[int] = None
    mitra_earnings: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FinishWorkRequest(BaseModel):
    """
    Optional body for finishing a session.

    The elapsed seconds shown by the client ticker are recorded for
    diagnostics; billing always uses the server timestamps.
    """
    reported_elapsed_seconds: Optional[int] = Field(default=None, ge=0)


class SettlementResponse(BaseModel):
    billable_amount: int
    commission_amount: int
    new_balance: int
    should_block: bool
    outstanding_debt: int


class FinishWorkResponse(BaseModel):
    order: OrderResponse
    settlement: SettlementResponse


class ActiveSessionResponse(BaseModel):
    """Live session view. elapsed_seconds and estimated_amount are display values."""
    order_id: int
    service_type: ServiceType
    user_address: str
    start_time: datetime
    elapsed_seconds: int
    estimated_amount: int


class MitraStatisticsResponse(BaseModel):
    completed_orders: int
    open_orders: int
    total_billed: int
    total_commission: int
    total_earnings: int
    total_seconds_worked: int
