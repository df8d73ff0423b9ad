"""
Wallet and Account Schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from getlife.app.models.billing_enums import TransactionType, TransactionStatus


class TopUpRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Amount transferred")
    transfer_proof: str = Field(..., min_length=1, max_length=255, description="Reference to the uploaded transfer proof")


class TransactionResponse(BaseModel):
    id: int
    user_id: int
    order_id: Optional[int] = None
    type: TransactionType
    status: TransactionStatus
    amount: int
    description: Optional[str] = None
    transfer_proof: Optional[str] = None
    reviewed_by_admin_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AccountResponse(BaseModel):
    user_id: int
    balance: int
    blocked: bool
    outstanding_debt: int
    version: int

    class Config:
        from_attributes = True


class AccountListItem(AccountResponse):
    username: str
    full_name: str


class ReviewRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=255)


class TopUpDecisionResponse(BaseModel):
    transaction: TransactionResponse
    account: Optional[AccountResponse] = None


class CreditRequest(BaseModel):
    amount: int = Field(..., gt=0)
    note: Optional[str] = Field(default=None, max_length=255)


class UnblockRequest(BaseModel):
    """Credit applied before the block is lifted, if the debt is not yet covered."""
    credit_amount: Optional[int] = Field(default=None, gt=0)
    note: Optional[str] = Field(default=None, max_length=255)
