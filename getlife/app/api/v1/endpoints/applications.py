"""
Mitra Application API Endpoints.

Public submission plus the admin review queue.
"""

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from getlife.app.db.session import get_db
from getlife.app.core.guards import require_admin
from getlife.app.models.order_enums import ApplicationStatus
from getlife.app.schemas.application import ApplicationCreate, ApplicationResponse, ApplicationApprove
from getlife.app.schemas.wallet import ReviewRequest
from getlife.app.services.application_service import ApplicationService

router = APIRouter(prefix="/applications", tags=["Mitra Applications"])
admin_router = APIRouter(prefix="/admin/applications", tags=["Admin - Mitra Applications"])


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def submit_application(
    application: ApplicationCreate,
    db: AsyncSession = Depends(get_db)
):
    """Apply to become a mitra. No account needed."""
    return await ApplicationService.submit(db, application)


@admin_router.get("", response_model=List[ApplicationResponse])
async def list_applications(
    status: Optional[ApplicationStatus] = Query(None),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List applications, optionally by status."""
    return await ApplicationService.list_applications(db, status)


@admin_router.post("/{application_id}/approve", response_model=ApplicationResponse)
async def approve_application(
    application_id: int,
    credentials: ApplicationApprove,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Approve an application.

    Creates a verified mitra with the given login and a zero-balance account.
    """
    return await ApplicationService.approve(db, application_id, credentials, admin)


@admin_router.post("/{application_id}/reject", response_model=ApplicationResponse)
async def reject_application(
    application_id: int,
    review: Optional[ReviewRequest] = Body(None),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Reject an application."""
    return await ApplicationService.reject(
        db, application_id, admin, reason=review.reason if review else None
    )
