"""
Mitra Work Session API Endpoints.

Accept orders, run the work timer and settle it, and inspect the account.
All timestamps come from the server clock.
"""

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from getlife.app.db.session import get_db
from getlife.app.core.guards import require_mitra
from getlife.app.core.exceptions import ResourceNotFoundError
from getlife.app.domain.billing.clock import get_clock
from getlife.app.models.order_enums import OrderStatus
from getlife.app.schemas.order import (
    ActiveSessionResponse, FinishWorkRequest, FinishWorkResponse,
    MitraStatisticsResponse, OrderResponse, SettlementResponse,
)
from getlife.app.schemas.wallet import AccountResponse
from getlife.app.services.account_ledger import AccountLedger
from getlife.app.services.order_service import OrderService

router = APIRouter(prefix="/mitra", tags=["Mitra - Work Sessions"])


@router.get("/orders", response_model=List[OrderResponse])
async def list_orders(
    status: Optional[OrderStatus] = Query(None),
    mitra: dict = Depends(require_mitra),
    db: AsyncSession = Depends(get_db)
):
    """List orders assigned to the current mitra."""
    return await OrderService.list_mitra_orders(db, mitra["user_id"], status)


@router.post("/orders/{order_id}/accept", response_model=OrderResponse)
async def accept_order(
    order_id: int,
    mitra: dict = Depends(require_mitra),
    db: AsyncSession = Depends(get_db),
    clock=Depends(get_clock)
):
    """
    Accept an awaiting order.

    Requires an unblocked account holding at least the minimum balance.

    Raises:
        402: Balance below the acceptance minimum
        403: Account blocked
        409: Order not awaiting acceptance
    """
    order = await OrderService.accept_order(db, order_id, mitra, clock.now())
    return OrderResponse.model_validate(order)


@router.post("/orders/{order_id}/start", response_model=OrderResponse)
async def start_work(
    order_id: int,
    mitra: dict = Depends(require_mitra),
    db: AsyncSession = Depends(get_db),
    clock=Depends(get_clock)
):
    """
    Start the work timer of an accepted order.

    Records the start timestamp billing is derived from. Only one session
    may run per mitra.
    """
    order = await OrderService.start_work(db, order_id, mitra, clock.now())
    return OrderResponse.model_validate(order)


@router.post("/orders/{order_id}/finish", response_model=FinishWorkResponse)
async def finish_work(
    order_id: int,
    body: Optional[FinishWorkRequest] = Body(None),
    mitra: dict = Depends(require_mitra),
    db: AsyncSession = Depends(get_db),
    clock=Depends(get_clock)
):
    """
    Finish the running session and settle it.

    Elapsed time is the difference between the stored start timestamp and
    now. The platform commission is taken from the mitra balance; if it
    goes negative the account is blocked and the order is frozen as BLOCKED.

    Raises:
        409: No running session on this order, or a conflict that outlasted retries
        503: Settlement could not be saved; the session is still running
    """
    order, result = await OrderService.finish_work(
        db,
        order_id,
        mitra,
        clock.now(),
        reported_elapsed_seconds=body.reported_elapsed_seconds if body else None,
    )
    return FinishWorkResponse(
        order=OrderResponse.model_validate(order),
        settlement=SettlementResponse(
            billable_amount=result.billable_amount,
            commission_amount=result.commission_amount,
            new_balance=result.new_balance,
            should_block=result.should_block,
            outstanding_debt=result.outstanding_debt,
        ),
    )


@router.get("/session", response_model=ActiveSessionResponse)
async def active_session(
    mitra: dict = Depends(require_mitra),
    db: AsyncSession = Depends(get_db),
    clock=Depends(get_clock)
):
    """Running session with live elapsed time and estimated cost."""
    order = await OrderService.get_active_session(db, mitra["user_id"])
    if not order:
        raise ResourceNotFoundError("Active work session")
    return OrderService.describe_session(order, clock.now())


@router.get("/account", response_model=AccountResponse)
async def get_account(
    mitra: dict = Depends(require_mitra),
    db: AsyncSession = Depends(get_db)
):
    """Balance, block state and outstanding debt."""
    return await AccountLedger.get_account(db, mitra["user_id"])


@router.get("/statistics", response_model=MitraStatisticsResponse)
async def statistics(
    mitra: dict = Depends(require_mitra),
    db: AsyncSession = Depends(get_db)
):
    """Totals over the mitra's settled orders."""
    return await OrderService.mitra_statistics(db, mitra["user_id"])
