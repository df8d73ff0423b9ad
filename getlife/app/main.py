"""
FastAPI Application Entry Point.

This is the main application file for the GetLife Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from getlife.app.core.config import settings
from getlife.app.api.v1.router import router as api_v1_router
from getlife.app.db.session import engine, Base
from getlife.app.core.observability import ObservabilityMiddleware, configure_logging
from getlife.app.core.redis_client import ping_redis, close_redis
from getlife.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from getlife.app.models.user import User
from getlife.app.models.account import Account
from getlife.app.models.order import Order
from getlife.app.models.wallet_transaction import WalletTransaction
from getlife.app.models.blocked_account import BlockedAccount
from getlife.app.models.mitra_application import MitraApplication
from getlife.app.models.audit_log import AuditLog
from getlife.app.models.notification import Notification

logger = logging.getLogger("getlife")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging.
    2. Creates database tables on startup.
    3. Releases database and Redis connections on shutdown.
    """
    configure_logging(settings.log_level)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s started (API %s)", settings.app_name, settings.api_version)
    yield
    await engine.dispose()
    await close_redis()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Backend for the GetLife service marketplace",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if await ping_redis() else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to GetLife Backend API",
        "docs": "/docs",
        "health": "/health",
    }
