"""
Admin Wallet API Endpoints.

Top-up review, direct balance transfers and account unblocking.
"""

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from getlife.app.db.session import get_db
from getlife.app.core.guards import require_admin
from getlife.app.domain.billing.clock import get_clock
from getlife.app.models.billing_enums import TransactionStatus
from getlife.app.schemas.admin import PlatformEarningsResponse
from getlife.app.schemas.wallet import (
    AccountListItem, AccountResponse, CreditRequest, ReviewRequest,
    TopUpDecisionResponse, TransactionResponse, UnblockRequest,
)
from getlife.app.services.wallet_service import WalletService

router = APIRouter(prefix="/admin", tags=["Admin - Wallet"])


def _account_item(account, user) -> AccountListItem:
    return AccountListItem(
        user_id=account.user_id,
        balance=account.balance,
        blocked=account.blocked,
        outstanding_debt=account.outstanding_debt,
        version=account.version,
        username=user.username,
        full_name=user.full_name,
    )


@router.get("/topups", response_model=List[TransactionResponse])
async def list_topups(
    status: Optional[TransactionStatus] = Query(None),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List top-up requests, optionally by review status."""
    return await WalletService.list_topups(db, status)


@router.post("/topups/{transaction_id}/approve", response_model=TopUpDecisionResponse)
async def approve_topup(
    transaction_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    clock=Depends(get_clock)
):
    """
    Approve a pending top-up.

    The account is credited in the same transaction. Approval alone never
    lifts a block.
    """
    txn, account = await WalletService.approve_topup(db, transaction_id, admin, clock.now())
    return TopUpDecisionResponse(
        transaction=TransactionResponse.model_validate(txn),
        account=AccountResponse.model_validate(account),
    )


@router.post("/topups/{transaction_id}/reject", response_model=TopUpDecisionResponse)
async def reject_topup(
    transaction_id: int,
    review: Optional[ReviewRequest] = Body(None),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    clock=Depends(get_clock)
):
    """Reject a pending top-up. The balance is not touched."""
    txn = await WalletService.reject_topup(
        db, transaction_id, admin, clock.now(), reason=review.reason if review else None
    )
    return TopUpDecisionResponse(transaction=TransactionResponse.model_validate(txn))


@router.get("/accounts", response_model=List[AccountListItem])
async def list_accounts(
    blocked: Optional[bool] = Query(None),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List accounts, lowest balance first. Filter blocked=true for the debt list."""
    rows = await WalletService.list_accounts(db, blocked)
    return [_account_item(account, user) for account, user in rows]


@router.get("/accounts/{user_id}", response_model=AccountListItem)
async def get_account(
    user_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Balance, block state and owner of one account."""
    account, user = await WalletService.get_account_with_user(db, user_id)
    return _account_item(account, user)


@router.post("/accounts/{user_id}/credit", response_model=AccountResponse)
async def credit_account(
    user_id: int,
    request: CreditRequest,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    clock=Depends(get_clock)
):
    """Transfer balance to a user."""
    return await WalletService.admin_credit(
        db, user_id, request.amount, admin, clock.now(), note=request.note
    )


@router.post("/accounts/{user_id}/unblock", response_model=AccountResponse)
async def unblock_account(
    user_id: int,
    request: Optional[UnblockRequest] = Body(None),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    clock=Depends(get_clock)
):
    """
    Lift the block on an account.

    The balance must be non-negative, either already or after the optional
    credit applied in the same call.

    Raises:
        409: Account not blocked, or debt still outstanding
    """
    return await WalletService.unblock_account(
        db,
        user_id,
        admin,
        clock.now(),
        credit_amount=request.credit_amount if request else None,
        note=request.note if request else None,
    )


@router.get("/earnings", response_model=PlatformEarningsResponse)
async def platform_earnings(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Commission collected and debt outstanding across the platform."""
    return await WalletService.platform_earnings(db)
