"""
Settlement Service (Domain Logic).

Applies the settlement calculator to a finished work session and records
the outcome: order amounts, provider balance, commission transaction and,
when the balance went negative, the block record.

All writes are flushed into the caller's transaction. The caller commits
once so the order and the account change land together or not at all.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from getlife.app.core.config import settings, settlement_config
from getlife.app.core.exceptions import InvalidStateTransitionError
from getlife.app.core.reliability import retry_on_conflict
from getlife.app.domain.billing.clock import elapsed_seconds
from getlife.app.domain.billing.settlement_calculator import SettlementConfig, SettlementResult, settle
from getlife.app.models.billing_enums import TransactionType, TransactionStatus
from getlife.app.models.order import Order
from getlife.app.models.order_enums import OrderStatus
from getlife.app.models.wallet_transaction import WalletTransaction
from getlife.app.services.account_ledger import AccountLedger
from getlife.app.services.state_guard import transition_status

logger = logging.getLogger("getlife")


class SettlementService:

    @staticmethod
    async def settle_order(
        db: AsyncSession,
        order: Order,
        ended_at: datetime,
        config: Optional[SettlementConfig] = None,
        attempts: Optional[int] = None,
    ) -> SettlementResult:
        """
        Settle an IN_PROGRESS order.

        Flow:
        1. Elapsed seconds from the stored start timestamp to ended_at
        2. Claim the order: a conditional UPDATE moves it out of IN_PROGRESS,
           so a second finish of the same session matches no row
        3. Read the provider balance and settle against it
        4. Conditionally write the new balance (re-read and recompute on conflict)
        5. Freeze the order as COMPLETED, or BLOCKED if the balance went negative
        6. Record the commission transaction and any block record

        Args:
            db: Database session (transaction managed by caller)
            order: Order currently being worked
            ended_at: Moment the provider finished
            config: Billing constants, defaults to the configured ones
            attempts: Conflict retries, defaults to the configured count

        Returns:
            The SettlementResult that was applied

        Raises:
            InvalidStateTransitionError: If the order is not IN_PROGRESS, including
                when another request settled it after it was loaded
            ConcurrentModificationError: If every attempt hit a concurrent update
        """
        if order.status != OrderStatus.IN_PROGRESS or order.start_time is None:
            raise InvalidStateTransitionError(
                f"Order {order.id} has no running work session",
                details={"status": order.status.value},
            )

        config = config or settlement_config()
        elapsed = elapsed_seconds(order.start_time, ended_at)

        await transition_status(
            db, Order, order.id,
            OrderStatus.IN_PROGRESS, OrderStatus.COMPLETED,
            f"Order {order.id} has no running work session",
            end_time=ended_at,
            elapsed_seconds=elapsed,
        )

        async def apply(attempt: int) -> SettlementResult:
            snapshot = await AccountLedger.read_balance(db, order.mitra_id)
            result = settle(elapsed, snapshot.balance, config)
            await AccountLedger.write_balance(
                db,
                order.mitra_id,
                result.new_balance,
                expected_version=snapshot.version,
                blocked=snapshot.blocked or result.should_block,
            )
            return result

        result = await retry_on_conflict(
            apply,
            attempts=attempts or settings.billing_conflict_retries,
        )

        order.end_time = ended_at
        order.elapsed_seconds = elapsed
        order.total_amount = result.billable_amount
        order.admin_fee = result.commission_amount
        order.mitra_earnings = result.provider_earnings
        order.status = OrderStatus.BLOCKED if result.should_block else OrderStatus.COMPLETED

        db.add(WalletTransaction(
            user_id=order.mitra_id,
            order_id=order.id,
            type=TransactionType.COMMISSION,
            status=TransactionStatus.APPROVED,
            amount=-result.commission_amount,
            description=f"Platform fee for order {order.id} ({elapsed}s worked)",
        ))

        await db.flush()

        if result.should_block:
            await AccountLedger.mark_blocked(
                db,
                order.mitra_id,
                debt_amount=result.outstanding_debt,
                reason=f"Negative balance after settling order {order.id}",
                blocked_at=ended_at,
                order_id=order.id,
            )

        logger.info(
            "Settled order %s: elapsed=%ss billable=%s commission=%s balance=%s blocked=%s",
            order.id, elapsed, result.billable_amount, result.commission_amount,
            result.new_balance, result.should_block,
        )
        return result
