"""
Wallet Service.

Top-up requests, admin review of top-ups, direct admin credits and the
admin path for lifting a block. Every balance change goes through
AccountLedger so it is version-checked.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from getlife.app.core.exceptions import (
    ConcurrentModificationError,
    InvalidRequestError,
    InvalidStateTransitionError,
    ResourceNotFoundError,
)
from getlife.app.db.session import commit_or_raise
from getlife.app.models.account import Account
from getlife.app.models.billing_enums import TransactionType, TransactionStatus
from getlife.app.models.notification import NotificationType
from getlife.app.models.order import Order
from getlife.app.models.order_enums import OrderStatus
from getlife.app.models.user import User
from getlife.app.models.wallet_transaction import WalletTransaction
from getlife.app.services.account_ledger import AccountLedger
from getlife.app.services.audit import AuditAction, log_admin_action, log_event
from getlife.app.services.notification_service import NotificationService
from getlife.app.services.state_guard import transition_status

logger = logging.getLogger("getlife")


class WalletService:

    @staticmethod
    async def request_topup(
        db: AsyncSession,
        user: Dict[str, Any],
        amount: int,
        transfer_proof: str
    ) -> WalletTransaction:
        """
        Record a top-up request awaiting admin review.

        Blocked accounts may request top-ups; that is how debt gets paid.
        """
        if amount <= 0:
            raise InvalidRequestError("Top-up amount must be positive")
        if not transfer_proof:
            raise InvalidRequestError("Transfer proof is required")

        txn = WalletTransaction(
            user_id=user["user_id"],
            type=TransactionType.TOPUP,
            status=TransactionStatus.PENDING,
            amount=amount,
            transfer_proof=transfer_proof,
            description="Balance top-up",
        )
        db.add(txn)
        await db.flush()

        await log_event(
            db,
            action=AuditAction.TOPUP_REQUESTED,
            actor_id=user["user_id"],
            actor_username=user.get("sub"),
            metadata={"transaction_id": txn.id, "amount": amount},
            commit=False,
        )
        await commit_or_raise(db, "top-up request")
        await db.refresh(txn)
        return txn

    @staticmethod
    async def list_transactions(db: AsyncSession, user_id: int) -> List[WalletTransaction]:
        result = await db.execute(
            select(WalletTransaction)
            .where(WalletTransaction.user_id == user_id)
            .order_by(desc(WalletTransaction.created_at), desc(WalletTransaction.id))
        )
        return result.scalars().all()

    @staticmethod
    async def list_topups(
        db: AsyncSession,
        status: Optional[TransactionStatus] = None
    ) -> List[WalletTransaction]:
        query = select(WalletTransaction).where(WalletTransaction.type == TransactionType.TOPUP)
        if status:
            query = query.where(WalletTransaction.status == status)
        query = query.order_by(desc(WalletTransaction.created_at), desc(WalletTransaction.id))

        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def _get_pending_topup(db: AsyncSession, transaction_id: int) -> WalletTransaction:
        txn = await db.get(WalletTransaction, transaction_id)
        if not txn or txn.type != TransactionType.TOPUP:
            raise ResourceNotFoundError("Top-up", transaction_id)
        if txn.status != TransactionStatus.PENDING:
            raise InvalidStateTransitionError(
                "Top-up has already been reviewed",
                details={"status": txn.status.value},
            )
        return txn

    @staticmethod
    async def _mark_reviewed(
        db: AsyncSession,
        txn: WalletTransaction,
        decision: TransactionStatus,
        admin: Dict[str, Any],
        now: datetime
    ) -> None:
        await transition_status(
            db, WalletTransaction, txn.id,
            TransactionStatus.PENDING, decision,
            "Top-up has already been reviewed",
            reviewed_by_admin_id=admin["user_id"],
            reviewed_at=now,
        )

    @staticmethod
    async def approve_topup(
        db: AsyncSession,
        transaction_id: int,
        admin: Dict[str, Any],
        now: datetime
    ) -> Tuple[WalletTransaction, Account]:
        """
        Approve a pending top-up and credit the account in the same transaction.

        The top-up is flipped out of PENDING by a conditional UPDATE before the
        credit, so two overlapping approvals credit it once.

        Raises:
            InvalidStateTransitionError: If the top-up was already reviewed
            ConcurrentModificationError: If the balance kept changing under the credit
        """
        txn = await WalletService._get_pending_topup(db, transaction_id)

        try:
            await WalletService._mark_reviewed(db, txn, TransactionStatus.APPROVED, admin, now)
            account = await AccountLedger.credit(db, txn.user_id, txn.amount)
        except (InvalidStateTransitionError, ConcurrentModificationError):
            await db.rollback()
            raise

        txn.status = TransactionStatus.APPROVED
        txn.reviewed_by_admin_id = admin["user_id"]
        txn.reviewed_at = now

        message = f"Your top-up of {txn.amount} was approved. Balance: {account.balance}"
        if account.blocked and account.balance >= 0:
            message += ". Your debt is covered; an admin will lift the block."
        await NotificationService.create_notification(
            db,
            user_id=txn.user_id,
            title="Top-up approved",
            message=message,
            type=NotificationType.BILLING_UPDATE,
            metadata={"transaction_id": txn.id, "amount": txn.amount},
        )
        await log_admin_action(
            db,
            admin_id=admin["user_id"],
            admin_username=admin.get("sub"),
            action=AuditAction.TOPUP_APPROVED,
            target_user_id=txn.user_id,
            target_username=None,
            metadata={"transaction_id": txn.id, "amount": txn.amount, "balance": account.balance},
            commit=False,
        )
        await commit_or_raise(db, "top-up approval")
        await db.refresh(txn)
        return txn, account

    @staticmethod
    async def reject_topup(
        db: AsyncSession,
        transaction_id: int,
        admin: Dict[str, Any],
        now: datetime,
        reason: Optional[str] = None
    ) -> WalletTransaction:
        txn = await WalletService._get_pending_topup(db, transaction_id)

        await WalletService._mark_reviewed(db, txn, TransactionStatus.REJECTED, admin, now)
        txn.status = TransactionStatus.REJECTED
        txn.reviewed_by_admin_id = admin["user_id"]
        txn.reviewed_at = now

        await NotificationService.create_notification(
            db,
            user_id=txn.user_id,
            title="Top-up rejected",
            message=f"Your top-up of {txn.amount} was rejected" + (f": {reason}" if reason else ""),
            type=NotificationType.BILLING_UPDATE,
            metadata={"transaction_id": txn.id},
        )
        await log_admin_action(
            db,
            admin_id=admin["user_id"],
            admin_username=admin.get("sub"),
            action=AuditAction.TOPUP_REJECTED,
            target_user_id=txn.user_id,
            target_username=None,
            metadata={"transaction_id": txn.id, "reason": reason},
            commit=False,
        )
        await commit_or_raise(db, "top-up rejection")
        await db.refresh(txn)
        return txn

    @staticmethod
    async def _credit_with_record(
        db: AsyncSession,
        user_id: int,
        amount: int,
        admin: Dict[str, Any],
        now: datetime,
        note: Optional[str]
    ) -> Account:
        account = await AccountLedger.credit(db, user_id, amount)
        db.add(WalletTransaction(
            user_id=user_id,
            type=TransactionType.ADMIN_CREDIT,
            status=TransactionStatus.APPROVED,
            amount=amount,
            description=note or "Balance transfer by admin",
            reviewed_by_admin_id=admin["user_id"],
            reviewed_at=now,
        ))
        await db.flush()
        await log_admin_action(
            db,
            admin_id=admin["user_id"],
            admin_username=admin.get("sub"),
            action=AuditAction.BALANCE_CREDITED,
            target_user_id=user_id,
            target_username=None,
            metadata={"amount": amount, "balance": account.balance, "note": note},
            commit=False,
        )
        return account

    @staticmethod
    async def _get_user(db: AsyncSession, user_id: int) -> User:
        user = await db.get(User, user_id)
        if not user:
            raise ResourceNotFoundError("User", user_id)
        return user

    @staticmethod
    async def admin_credit(
        db: AsyncSession,
        user_id: int,
        amount: int,
        admin: Dict[str, Any],
        now: datetime,
        note: Optional[str] = None
    ) -> Account:
        """Transfer balance to a user directly."""
        await WalletService._get_user(db, user_id)
        if amount <= 0:
            raise InvalidRequestError("Credit amount must be positive")

        account = await WalletService._credit_with_record(db, user_id, amount, admin, now, note)
        await NotificationService.create_notification(
            db,
            user_id=user_id,
            title="Balance credited",
            message=f"An admin added {amount} to your balance. Balance: {account.balance}",
            type=NotificationType.BILLING_UPDATE,
            metadata={"amount": amount},
        )
        await commit_or_raise(db, "balance credit")
        return account

    @staticmethod
    async def list_accounts(db: AsyncSession, blocked: Optional[bool] = None) -> List[Tuple[Account, User]]:
        query = select(Account, User).join(User, User.id == Account.user_id)
        if blocked is not None:
            query = query.where(Account.blocked == blocked)
        query = query.order_by(Account.balance)

        result = await db.execute(query)
        return result.all()

    @staticmethod
    async def get_account_with_user(db: AsyncSession, user_id: int) -> Tuple[Account, User]:
        user = await WalletService._get_user(db, user_id)
        account = await AccountLedger.get_account(db, user_id)
        return account, user

    @staticmethod
    async def unblock_account(
        db: AsyncSession,
        user_id: int,
        admin: Dict[str, Any],
        now: datetime,
        credit_amount: Optional[int] = None,
        note: Optional[str] = None
    ) -> Account:
        """
        Lift a block, optionally crediting the account first in the same transaction.

        Raises:
            InvalidStateTransitionError: If the account is not blocked or the
                balance (after any credit) is still negative
        """
        user = await WalletService._get_user(db, user_id)

        if credit_amount:
            if credit_amount <= 0:
                raise InvalidRequestError("Credit amount must be positive")
            await WalletService._credit_with_record(db, user_id, credit_amount, admin, now, note)

        account = await AccountLedger.clear_block(db, user_id, admin["user_id"], now)

        await NotificationService.create_notification(
            db,
            user_id=user_id,
            title="Account unblocked",
            message=f"Your account is active again. Balance: {account.balance}",
            type=NotificationType.ACCOUNT_UPDATE,
        )
        await log_admin_action(
            db,
            admin_id=admin["user_id"],
            admin_username=admin.get("sub"),
            action=AuditAction.ACCOUNT_UNBLOCKED,
            target_user_id=user_id,
            target_username=user.username,
            metadata={"balance": account.balance, "credit_amount": credit_amount},
            commit=False,
        )
        await commit_or_raise(db, "account unblock")
        logger.info("Account of user %s unblocked by admin %s", user_id, admin["user_id"])
        return account

    @staticmethod
    async def platform_earnings(db: AsyncSession) -> Dict[str, int]:
        """Commission collected across all settled orders."""
        result = await db.execute(
            select(
                func.count(Order.id),
                func.coalesce(func.sum(Order.total_amount), 0),
                func.coalesce(func.sum(Order.admin_fee), 0),
            ).where(Order.status.in_((OrderStatus.COMPLETED, OrderStatus.BLOCKED)))
        )
        settled, gross, commission = result.one()

        blocked = await db.execute(
            select(func.count(Account.id), func.coalesce(func.sum(Account.outstanding_debt), 0))
            .where(Account.blocked == True)
        )
        blocked_count, debt = blocked.one()

        return {
            "settled_orders": settled,
            "total_billed": int(gross),
            "total_commission": int(commission),
            "blocked_accounts": blocked_count,
            "total_outstanding_debt": int(debt),
        }
