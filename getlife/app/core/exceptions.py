"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger("getlife")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class InvalidStateTransitionError(AppException):
    """Raised when an order or request is not in the state an action requires."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_STATE_001",
            status_code=status.HTTP_409_CONFLICT,
            details=details
        )


class InvalidRequestError(AppException):
    """Raised when a request is well-formed but refers to something unusable."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_BAD_REQUEST",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class DuplicateResourceError(AppException):
    """Raised when a unique value (username, email) is already taken."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="ERR_DUPLICATE",
            status_code=status.HTTP_409_CONFLICT
        )


class InsufficientBalanceError(AppException):
    """Raised when a mitra balance is below the order acceptance threshold."""

    def __init__(self, balance: int, required: int):
        super().__init__(
            message=f"Minimum balance of {required} is required to accept orders",
            error_code="ERR_BALANCE_001",
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            details={"balance": balance, "required": required}
        )


class AccountBlockedError(AppException):
    """Raised when a blocked mitra tries to take on more work."""

    def __init__(self, outstanding_debt: int):
        super().__init__(
            message="Account is blocked until the outstanding debt is cleared by an admin",
            error_code="ERR_BLOCKED_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"outstanding_debt": outstanding_debt}
        )


class InvalidSettlementInputError(AppException, ValueError):
    """Raised when settlement input or configuration is outside its domain."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="ERR_SETTLEMENT_INPUT",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY
        )


class ConcurrentModificationError(AppException):
    """Raised when a balance changed between read and write."""

    def __init__(self, resource: str, resource_id: Any = None):
        super().__init__(
            message=f"{resource} was modified concurrently, please retry",
            error_code="ERR_CONFLICT",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource": resource, "id": resource_id}
        )


class PersistenceError(AppException):
    """Raised when a write could not be committed. The operation was not applied."""

    def __init__(self, message: str = "Could not save changes, please retry"):
        super().__init__(
            message=message,
            error_code="ERR_PERSISTENCE",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"retryable": True}
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": exc.errors()
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s: %s", type(exc).__name__, exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
