"""
Database seeding script for initial users.

Creates the ADMIN user plus one demo customer and one verified demo mitra
(with accounts) for development. Run after the database is reachable:

    python -m getlife.seed_users
"""

import asyncio

from sqlalchemy import select

from getlife.app.core.security import get_password_hash
from getlife.app.db.session import AsyncSessionLocal, engine, Base
from getlife.app.models.account import Account
from getlife.app.models.enums import UserRole, ProfileStatus, ServiceType
from getlife.app.models.user import User
from getlife.app.services.account_ledger import AccountLedger


async def seed_users():
    """
    Seed initial users with different roles.

    Creates:
    - 1 ADMIN user
    - 1 USER (customer) with an empty account
    - 1 verified MITRA (GetClean) with enough balance to accept orders
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("Starting user seeding...")

        result = await db.execute(select(User).where(User.username == "admin"))
        if result.scalar_one_or_none():
            print("ADMIN user already exists, skipping seeding")
            return

        admin_user = User(
            email="admin@getlife.id",
            username="admin",
            hashed_password=get_password_hash("admin123"),
            role=UserRole.ADMIN,
            full_name="GetLife Admin",
            status=ProfileStatus.ACTIVE,
            is_active=True,
            is_superuser=True
        )
        db.add(admin_user)
        print("Created ADMIN user (username: admin, password: admin123)")

        customer = User(
            email="user@getlife.id",
            username="user",
            hashed_password=get_password_hash("user123"),
            role=UserRole.USER,
            full_name="Demo Customer",
            address="Jl. Merdeka 1",
            status=ProfileStatus.ACTIVE,
            is_active=True,
            is_superuser=False
        )
        db.add(customer)
        print("Created USER (username: user, password: user123)")

        mitra = User(
            email="mitra@getlife.id",
            username="mitra",
            hashed_password=get_password_hash("mitra123"),
            role=UserRole.MITRA,
            full_name="Demo Mitra",
            expertise=ServiceType.GET_CLEAN,
            status=ProfileStatus.VERIFIED,
            is_active=True,
            is_superuser=False
        )
        db.add(mitra)
        await db.flush()

        await AccountLedger.open_account(db, customer.id)
        await AccountLedger.open_account(db, mitra.id, balance=50000)
        print("Created MITRA (username: mitra, password: mitra123, balance: 50000)")

        await db.commit()

        count = await db.execute(select(Account))
        print(f"Seeding complete, {len(count.scalars().all())} accounts in place")


if __name__ == "__main__":
    asyncio.run(seed_users())
