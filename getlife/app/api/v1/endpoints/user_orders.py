"""
Customer Order API Endpoints.

Browse mitras, place orders, follow and cancel them.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from getlife.app.db.session import get_db
from getlife.app.core.guards import require_customer
from getlife.app.models.enums import ServiceType
from getlife.app.schemas.order import MitraSummary, OrderCreate, OrderResponse
from getlife.app.services.order_service import OrderService

router = APIRouter(prefix="/user", tags=["User - Orders"])


@router.get("/mitras", response_model=List[MitraSummary])
async def list_mitras(
    service_type: Optional[ServiceType] = Query(None),
    current_user: dict = Depends(require_customer),
    db: AsyncSession = Depends(get_db)
):
    """List mitras available for booking, optionally by service."""
    return await OrderService.list_available_mitras(db, service_type)


@router.post("/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    current_user: dict = Depends(require_customer),
    db: AsyncSession = Depends(get_db)
):
    """
    Place an order with a mitra.

    The mitra must be verified and offer the requested service.
    The order starts AWAITING acceptance.
    """
    order = await OrderService.create_order(
        db,
        current_user,
        service_type=order_data.service_type,
        mitra_id=order_data.mitra_id,
        user_address=order_data.user_address,
    )
    return OrderResponse.model_validate(order)


@router.get("/orders", response_model=List[OrderResponse])
async def list_orders(
    current_user: dict = Depends(require_customer),
    db: AsyncSession = Depends(get_db)
):
    """List the current user's orders, newest first."""
    return await OrderService.list_user_orders(db, current_user["user_id"])


@router.post("/orders/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: int,
    current_user: dict = Depends(require_customer),
    db: AsyncSession = Depends(get_db)
):
    """Cancel an order. Only possible before a mitra accepts it."""
    order = await OrderService.cancel_order(db, order_id, current_user)
    return OrderResponse.model_validate(order)
