"""
Wallet API Endpoints.

Top-up requests and the caller's own transaction history.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from getlife.app.db.session import get_db
from getlife.app.core.guards import require_role
from getlife.app.models.enums import UserRole
from getlife.app.schemas.wallet import TopUpRequest, TransactionResponse
from getlife.app.services.wallet_service import WalletService

router = APIRouter(prefix="/wallet", tags=["Wallet"])

account_holder = require_role([UserRole.USER, UserRole.MITRA])


@router.post("/topups", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def request_topup(
    request: TopUpRequest,
    current_user: dict = Depends(account_holder),
    db: AsyncSession = Depends(get_db)
):
    """
    Submit a top-up with its transfer proof for admin review.

    Allowed while the account is blocked.
    """
    return await WalletService.request_topup(
        db, current_user, request.amount, request.transfer_proof
    )


@router.get("/transactions", response_model=List[TransactionResponse])
async def list_transactions(
    current_user: dict = Depends(account_holder),
    db: AsyncSession = Depends(get_db)
):
    """Top-ups, commissions and credits of the current user, newest first."""
    return await WalletService.list_transactions(db, current_user["user_id"])
