"""
Account Ledger Service.

Reads and writes account balances with optimistic concurrency. Every write
names the version it was computed from; a write against a stale version is
rejected instead of silently overwriting a concurrent update.

Nothing here commits. Callers own the transaction.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from getlife.app.core.config import settings
from getlife.app.core.exceptions import (
    ConcurrentModificationError,
    InvalidStateTransitionError,
    ResourceNotFoundError,
)
from getlife.app.core.reliability import retry_on_conflict
from getlife.app.models.account import Account
from getlife.app.models.blocked_account import BlockedAccount

logger = logging.getLogger("getlife")


@dataclass(frozen=True)
class BalanceSnapshot:
    """Balance as read at one version."""
    user_id: int
    balance: int
    version: int
    blocked: bool


class AccountLedger:

    @staticmethod
    async def open_account(db: AsyncSession, user_id: int, balance: int = 0) -> Account:
        """Create the account for a new user."""
        account = Account(
            user_id=user_id,
            balance=balance,
            outstanding_debt=max(0, -balance),
            blocked=False,
            version=1,
        )
        db.add(account)
        await db.flush()
        return account

    @staticmethod
    async def get_account(db: AsyncSession, user_id: int) -> Account:
        """
        Load the account of a user, always from the database.

        Raises:
            ResourceNotFoundError: If the user has no account
        """
        stmt = (
            select(Account)
            .where(Account.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        account = result.scalar_one_or_none()
        if not account:
            raise ResourceNotFoundError("Account", user_id)
        return account

    @staticmethod
    async def read_balance(db: AsyncSession, user_id: int) -> BalanceSnapshot:
        account = await AccountLedger.get_account(db, user_id)
        return BalanceSnapshot(
            user_id=account.user_id,
            balance=account.balance,
            version=account.version,
            blocked=account.blocked,
        )

    @staticmethod
    async def write_balance(
        db: AsyncSession,
        user_id: int,
        new_balance: int,
        expected_version: int,
        blocked: Optional[bool] = None,
    ) -> int:
        """
        Conditionally replace the balance of an account.

        The update only applies if the stored version still equals
        expected_version. outstanding_debt is derived from the new balance.

        Args:
            db: Database session
            user_id: Account holder
            new_balance: Balance to store
            expected_version: Version the new balance was computed from
            blocked: New blocked flag, or None to leave it unchanged

        Returns:
            The new version

        Raises:
            ConcurrentModificationError: If the account changed since it was read
        """
        values = {
            "balance": new_balance,
            "outstanding_debt": max(0, -new_balance),
            "version": expected_version + 1,
        }
        if blocked is not None:
            values["blocked"] = blocked

        stmt = (
            update(Account)
            .where(Account.user_id == user_id, Account.version == expected_version)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)

        if result.rowcount == 0:
            logger.info(
                "Stale balance write rejected for user %s (expected version %s)",
                user_id, expected_version,
            )
            raise ConcurrentModificationError("Account", user_id)

        return expected_version + 1

    @staticmethod
    async def mark_blocked(
        db: AsyncSession,
        user_id: int,
        debt_amount: int,
        reason: str,
        blocked_at: datetime,
        order_id: Optional[int] = None,
    ) -> BlockedAccount:
        """
        Open a block record for an account whose balance went negative.

        The blocked flag itself is written together with the balance.
        """
        record = BlockedAccount(
            user_id=user_id,
            order_id=order_id,
            reason=reason,
            debt_amount=debt_amount,
            blocked_at=blocked_at,
        )
        db.add(record)
        await db.flush()
        logger.warning("Account of user %s blocked with debt %s", user_id, debt_amount)
        return record

    @staticmethod
    async def credit(
        db: AsyncSession,
        user_id: int,
        amount: int,
        attempts: Optional[int] = None,
    ) -> Account:
        """
        Add amount to a balance, re-reading and retrying on conflicts.

        Crediting never lifts a block; only clear_block does.
        """
        if amount <= 0:
            raise ValueError("Credit amount must be positive")

        async def attempt(n: int) -> None:
            snapshot = await AccountLedger.read_balance(db, user_id)
            await AccountLedger.write_balance(
                db, user_id, snapshot.balance + amount, snapshot.version
            )

        await retry_on_conflict(
            attempt,
            attempts=attempts or settings.billing_conflict_retries,
        )
        return await AccountLedger.get_account(db, user_id)

    @staticmethod
    async def clear_block(
        db: AsyncSession,
        user_id: int,
        admin_id: int,
        cleared_at: datetime,
    ) -> Account:
        """
        Lift the block on an account and close its open block records.

        Raises:
            InvalidStateTransitionError: If the account is not blocked or
                still has a negative balance
        """
        async def attempt(n: int) -> None:
            snapshot = await AccountLedger.read_balance(db, user_id)
            if not snapshot.blocked:
                raise InvalidStateTransitionError(f"Account of user {user_id} is not blocked")
            if snapshot.balance < 0:
                raise InvalidStateTransitionError(
                    "Outstanding debt must be settled before unblocking",
                    details={"balance": snapshot.balance, "outstanding_debt": -snapshot.balance},
                )
            await AccountLedger.write_balance(
                db, user_id, snapshot.balance, snapshot.version, blocked=False
            )

        await retry_on_conflict(attempt, attempts=settings.billing_conflict_retries)

        result = await db.execute(
            select(BlockedAccount).where(
                BlockedAccount.user_id == user_id,
                BlockedAccount.unblocked_at.is_(None),
            )
        )
        for record in result.scalars().all():
            record.unblocked_at = cleared_at
            record.unblocked_by_admin_id = admin_id
        await db.flush()

        return await AccountLedger.get_account(db, user_id)
