"""
Order Service.

Order lifecycle for both sides of the marketplace: users place and cancel
orders, mitras accept, start and finish them. Finishing settles the work
session through SettlementService and commits everything in one transaction.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func, desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from getlife.app.core.config import settings, settlement_config
from getlife.app.core.exceptions import (
    AccountBlockedError,
    ConcurrentModificationError,
    InsufficientBalanceError,
    InvalidRequestError,
    InvalidStateTransitionError,
    PersistenceError,
    ResourceNotFoundError,
)
from getlife.app.db.session import commit_or_raise
from getlife.app.domain.billing.clock import elapsed_seconds
from getlife.app.domain.billing.settlement_calculator import SettlementResult, billable_amount
from getlife.app.domain.billing.settlement_service import SettlementService
from getlife.app.models.account import Account
from getlife.app.models.enums import UserRole, ProfileStatus, ServiceType
from getlife.app.models.notification import NotificationType
from getlife.app.models.order import Order
from getlife.app.models.order_enums import OrderStatus
from getlife.app.models.user import User
from getlife.app.services.account_ledger import AccountLedger
from getlife.app.services.audit import AuditAction, log_event
from getlife.app.services.notification_service import NotificationService
from getlife.app.services.state_guard import transition_status

logger = logging.getLogger("getlife")

SETTLED_STATUSES = (OrderStatus.COMPLETED, OrderStatus.BLOCKED)


class OrderService:

    # ------------------------------------------------------------------
    # User side
    # ------------------------------------------------------------------

    @staticmethod
    async def list_available_mitras(
        db: AsyncSession,
        service_type: Optional[ServiceType] = None
    ) -> List[User]:
        """Verified, active mitras whose accounts are not blocked."""
        query = (
            select(User)
            .join(Account, Account.user_id == User.id)
            .where(
                User.role == UserRole.MITRA,
                User.status == ProfileStatus.VERIFIED,
                User.is_active == True,
                Account.blocked == False,
            )
            .order_by(User.full_name)
        )
        if service_type:
            query = query.where(User.expertise == service_type)

        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def create_order(
        db: AsyncSession,
        user: Dict[str, Any],
        service_type: ServiceType,
        mitra_id: int,
        user_address: str
    ) -> Order:
        """
        Place an order with a specific mitra.

        Raises:
            ResourceNotFoundError: If the mitra does not exist
            InvalidRequestError: If the mitra is unverified, inactive or offers another service
        """
        mitra = await db.get(User, mitra_id)
        if not mitra or mitra.role != UserRole.MITRA:
            raise ResourceNotFoundError("Mitra", mitra_id)

        if mitra.status != ProfileStatus.VERIFIED or not mitra.is_active:
            raise InvalidRequestError("Mitra is not available for orders")

        if mitra.expertise != service_type:
            raise InvalidRequestError(
                f"Mitra does not offer {service_type.value}",
                details={"expertise": mitra.expertise.value if mitra.expertise else None},
            )

        order = Order(
            user_id=user["user_id"],
            mitra_id=mitra_id,
            service_type=service_type,
            user_address=user_address,
            status=OrderStatus.AWAITING,
        )
        db.add(order)
        await db.flush()

        await NotificationService.create_notification(
            db,
            user_id=mitra_id,
            title="New order",
            message=f"You have a new {service_type.value} order at {user_address}",
            type=NotificationType.ORDER_UPDATE,
            metadata={"order_id": order.id},
        )
        await log_event(
            db,
            action=AuditAction.ORDER_CREATED,
            actor_id=user["user_id"],
            actor_username=user.get("sub"),
            target_user_id=mitra_id,
            metadata={"order_id": order.id, "service_type": service_type.value},
            commit=False,
        )
        await commit_or_raise(db, "order")
        await db.refresh(order)
        return order

    @staticmethod
    async def list_user_orders(db: AsyncSession, user_id: int) -> List[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(desc(Order.created_at), desc(Order.id))
        )
        return result.scalars().all()

    @staticmethod
    async def cancel_order(db: AsyncSession, order_id: int, user: Dict[str, Any]) -> Order:
        """Cancel an order that no mitra has accepted yet."""
        order = await db.get(Order, order_id)
        if not order or order.user_id != user["user_id"]:
            raise ResourceNotFoundError("Order", order_id)

        if order.status != OrderStatus.AWAITING:
            raise InvalidStateTransitionError(
                "Only orders awaiting acceptance can be cancelled",
                details={"status": order.status.value},
            )

        await transition_status(
            db, Order, order.id,
            OrderStatus.AWAITING, OrderStatus.CANCELLED,
            "Only orders awaiting acceptance can be cancelled",
        )
        order.status = OrderStatus.CANCELLED
        await NotificationService.create_notification(
            db,
            user_id=order.mitra_id,
            title="Order cancelled",
            message=f"Order #{order.id} was cancelled by the customer",
            type=NotificationType.ORDER_UPDATE,
            metadata={"order_id": order.id},
        )
        await log_event(
            db,
            action=AuditAction.ORDER_CANCELLED,
            actor_id=user["user_id"],
            actor_username=user.get("sub"),
            metadata={"order_id": order.id},
            commit=False,
        )
        await commit_or_raise(db, "order cancellation")
        await db.refresh(order)
        return order

    # ------------------------------------------------------------------
    # Mitra side
    # ------------------------------------------------------------------

    @staticmethod
    async def list_mitra_orders(
        db: AsyncSession,
        mitra_id: int,
        status: Optional[OrderStatus] = None
    ) -> List[Order]:
        query = select(Order).where(Order.mitra_id == mitra_id)
        if status:
            query = query.where(Order.status == status)
        query = query.order_by(desc(Order.created_at), desc(Order.id))

        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def _get_mitra_order(db: AsyncSession, order_id: int, mitra_id: int) -> Order:
        order = await db.get(Order, order_id)
        if not order or order.mitra_id != mitra_id:
            raise ResourceNotFoundError("Order", order_id)
        return order

    @staticmethod
    async def _ensure_not_blocked(db: AsyncSession, mitra_id: int) -> Account:
        account = await AccountLedger.get_account(db, mitra_id)
        if account.blocked:
            raise AccountBlockedError(account.outstanding_debt)
        return account

    @staticmethod
    async def get_active_session(db: AsyncSession, mitra_id: int) -> Optional[Order]:
        result = await db.execute(
            select(Order).where(
                Order.mitra_id == mitra_id,
                Order.status == OrderStatus.IN_PROGRESS,
            )
        )
        return result.scalars().first()

    @staticmethod
    async def accept_order(
        db: AsyncSession,
        order_id: int,
        mitra: Dict[str, Any],
        now: datetime
    ) -> Order:
        """
        Accept an order assigned to this mitra.

        Raises:
            AccountBlockedError: If the mitra account is blocked
            InsufficientBalanceError: If the balance is below the acceptance minimum
            InvalidStateTransitionError: If the order is not AWAITING
        """
        order = await OrderService._get_mitra_order(db, order_id, mitra["user_id"])

        if order.status != OrderStatus.AWAITING:
            raise InvalidStateTransitionError(
                "Only orders awaiting acceptance can be accepted",
                details={"status": order.status.value},
            )

        account = await OrderService._ensure_not_blocked(db, mitra["user_id"])
        if account.balance < settings.billing_min_accept_balance:
            raise InsufficientBalanceError(account.balance, settings.billing_min_accept_balance)

        await transition_status(
            db, Order, order.id,
            OrderStatus.AWAITING, OrderStatus.ACCEPTED,
            "Only orders awaiting acceptance can be accepted",
            accepted_at=now,
        )
        order.status = OrderStatus.ACCEPTED
        order.accepted_at = now

        await NotificationService.create_notification(
            db,
            user_id=order.user_id,
            title="Order accepted",
            message=f"Your {order.service_type.value} order #{order.id} was accepted",
            type=NotificationType.ORDER_UPDATE,
            metadata={"order_id": order.id},
        )
        await log_event(
            db,
            action=AuditAction.ORDER_ACCEPTED,
            actor_id=mitra["user_id"],
            actor_username=mitra.get("sub"),
            target_user_id=order.user_id,
            metadata={"order_id": order.id, "balance": account.balance},
            commit=False,
        )
        await commit_or_raise(db, "order acceptance")
        await db.refresh(order)
        return order

    @staticmethod
    async def start_work(
        db: AsyncSession,
        order_id: int,
        mitra: Dict[str, Any],
        now: datetime
    ) -> Order:
        """
        Start the work session of an accepted order.

        Raises:
            AccountBlockedError: If the mitra account is blocked
            InvalidStateTransitionError: If the order is not ACCEPTED or another
                session is already running
        """
        order = await OrderService._get_mitra_order(db, order_id, mitra["user_id"])

        if order.status != OrderStatus.ACCEPTED:
            raise InvalidStateTransitionError(
                "Only accepted orders can be started",
                details={"status": order.status.value},
            )

        await OrderService._ensure_not_blocked(db, mitra["user_id"])

        running = await OrderService.get_active_session(db, mitra["user_id"])
        if running:
            raise InvalidStateTransitionError(
                "Another work session is already in progress",
                details={"order_id": running.id},
            )

        try:
            await transition_status(
                db, Order, order.id,
                OrderStatus.ACCEPTED, OrderStatus.IN_PROGRESS,
                "Only accepted orders can be started",
                start_time=now,
            )
        except IntegrityError:
            # uq_orders_running_session
            await db.rollback()
            raise InvalidStateTransitionError("Another work session is already in progress")
        order.status = OrderStatus.IN_PROGRESS
        order.start_time = now

        await NotificationService.create_notification(
            db,
            user_id=order.user_id,
            title="Work started",
            message=f"Your mitra started working on order #{order.id}",
            type=NotificationType.ORDER_UPDATE,
            metadata={"order_id": order.id},
        )
        await log_event(
            db,
            action=AuditAction.SESSION_STARTED,
            actor_id=mitra["user_id"],
            actor_username=mitra.get("sub"),
            metadata={"order_id": order.id, "start_time": now.isoformat()},
            commit=False,
        )
        await commit_or_raise(db, "work session start")
        await db.refresh(order)
        return order

    @staticmethod
    async def finish_work(
        db: AsyncSession,
        order_id: int,
        mitra: Dict[str, Any],
        now: datetime,
        reported_elapsed_seconds: Optional[int] = None
    ) -> Tuple[Order, SettlementResult]:
        """
        Finish the running work session and settle it.

        The order update, balance change, commission record and any block are
        committed together. If the commit fails the transaction is rolled back
        and the session stays IN_PROGRESS.

        Args:
            db: Database session
            order_id: Order being worked
            mitra: Authenticated mitra
            now: End of the session
            reported_elapsed_seconds: The client's display counter, kept for
                drift diagnostics only

        Raises:
            InvalidStateTransitionError: If the session is not running, or was
                settled by a concurrent request
            PersistenceError: If the settlement could not be committed
        """
        order = await OrderService._get_mitra_order(db, order_id, mitra["user_id"])

        try:
            result = await SettlementService.settle_order(db, order, now)
        except (InvalidStateTransitionError, ConcurrentModificationError):
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Settlement of order %s failed before commit: %s", order_id, e)
            raise PersistenceError("Could not save work session settlement, please retry")

        if result.should_block:
            await NotificationService.create_notification(
                db,
                user_id=mitra["user_id"],
                title="Account blocked",
                message=(
                    f"Your balance is {result.new_balance}. Pay the outstanding debt of "
                    f"{result.outstanding_debt} to continue taking orders."
                ),
                type=NotificationType.ACCOUNT_UPDATE,
                metadata={"order_id": order.id, "outstanding_debt": result.outstanding_debt},
            )

        await NotificationService.create_notification(
            db,
            user_id=order.user_id,
            title="Order completed",
            message=f"Order #{order.id} is complete. Total: {result.billable_amount}",
            type=NotificationType.ORDER_UPDATE,
            metadata={"order_id": order.id, "total_amount": result.billable_amount},
        )

        metadata = {
            "order_id": order.id,
            "elapsed_seconds": order.elapsed_seconds,
            "billable_amount": result.billable_amount,
            "commission_amount": result.commission_amount,
            "new_balance": result.new_balance,
            "should_block": result.should_block,
        }
        if reported_elapsed_seconds is not None:
            metadata["reported_elapsed_seconds"] = reported_elapsed_seconds
            metadata["counter_drift_seconds"] = order.elapsed_seconds - reported_elapsed_seconds

        await log_event(
            db,
            action=AuditAction.SESSION_SETTLED,
            actor_id=mitra["user_id"],
            actor_username=mitra.get("sub"),
            target_user_id=order.user_id,
            metadata=metadata,
            commit=False,
        )
        if result.should_block:
            await log_event(
                db,
                action=AuditAction.ACCOUNT_BLOCKED,
                target_user_id=mitra["user_id"],
                target_username=mitra.get("sub"),
                metadata={"order_id": order.id, "debt_amount": result.outstanding_debt},
                commit=False,
            )

        await commit_or_raise(db, "work session settlement")
        await db.refresh(order)
        return order, result

    @staticmethod
    def describe_session(order: Order, now: datetime) -> Dict[str, Any]:
        """Live view of a running session. Display only, never billed from."""
        elapsed = elapsed_seconds(order.start_time, now)
        return {
            "order_id": order.id,
            "service_type": order.service_type,
            "user_address": order.user_address,
            "start_time": order.start_time,
            "elapsed_seconds": elapsed,
            "estimated_amount": billable_amount(elapsed, settlement_config()),
        }

    @staticmethod
    async def mitra_statistics(db: AsyncSession, mitra_id: int) -> Dict[str, int]:
        """Totals over settled orders."""
        result = await db.execute(
            select(
                func.count(Order.id),
                func.coalesce(func.sum(Order.total_amount), 0),
                func.coalesce(func.sum(Order.admin_fee), 0),
                func.coalesce(func.sum(Order.mitra_earnings), 0),
                func.coalesce(func.sum(Order.elapsed_seconds), 0),
            ).where(
                Order.mitra_id == mitra_id,
                Order.status.in_(SETTLED_STATUSES),
            )
        )
        completed, gross, commission, net, seconds = result.one()

        pending = await db.execute(
            select(func.count(Order.id)).where(
                Order.mitra_id == mitra_id,
                Order.status.in_((OrderStatus.AWAITING, OrderStatus.ACCEPTED, OrderStatus.IN_PROGRESS)),
            )
        )

        return {
            "completed_orders": completed,
            "open_orders": pending.scalar_one(),
            "total_billed": int(gross),
            "total_commission": int(commission),
            "total_earnings": int(net),
            "total_seconds_worked": int(seconds),
        }
