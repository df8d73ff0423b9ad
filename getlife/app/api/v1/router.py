"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from getlife.app.api.v1.endpoints import (
    auth, admin, admin_wallet, applications,
    user_orders, mitra_work, wallet, notifications
)

router = APIRouter()

# Authentication and profile
router.include_router(auth.router)

# Mitra onboarding
router.include_router(applications.router)
router.include_router(applications.admin_router)

# Customer orders
router.include_router(user_orders.router)

# Mitra work sessions and settlement
router.include_router(mitra_work.router)

# Wallet
router.include_router(wallet.router)

# Administration
router.include_router(admin.router)
router.include_router(admin_wallet.router)

# Notifications
router.include_router(notifications.router)
router.include_router(notifications.admin_router)
