"""
Mitra Application Service.

Onboarding of service providers: public applications, admin approval
(which creates the verified mitra user and account) and rejection.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select, or_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from getlife.app.core.exceptions import DuplicateResourceError, InvalidStateTransitionError, ResourceNotFoundError
from getlife.app.core.security import get_password_hash
from getlife.app.db.session import commit_or_raise
from getlife.app.models.enums import UserRole, ProfileStatus
from getlife.app.models.mitra_application import MitraApplication
from getlife.app.models.notification import NotificationType
from getlife.app.models.order_enums import ApplicationStatus
from getlife.app.models.user import User
from getlife.app.schemas.application import ApplicationCreate, ApplicationApprove
from getlife.app.services.account_ledger import AccountLedger
from getlife.app.services.audit import AuditAction, log_admin_action, log_event
from getlife.app.services.notification_service import NotificationService
from getlife.app.services.state_guard import transition_status


class ApplicationService:

    @staticmethod
    async def submit(db: AsyncSession, data: ApplicationCreate) -> MitraApplication:
        application = MitraApplication(
            full_name=data.full_name,
            phone=data.phone,
            address=data.address,
            expertise=data.expertise,
            reason=data.reason,
            ktp_url=data.ktp_url,
            status=ApplicationStatus.PENDING,
        )
        db.add(application)
        await db.flush()

        await log_event(
            db,
            action=AuditAction.MITRA_APPLICATION_SUBMITTED,
            metadata={"application_id": application.id, "expertise": data.expertise.value},
            commit=False,
        )
        await commit_or_raise(db, "application")
        await db.refresh(application)
        return application

    @staticmethod
    async def list_applications(
        db: AsyncSession,
        status: Optional[ApplicationStatus] = None
    ) -> List[MitraApplication]:
        query = select(MitraApplication)
        if status:
            query = query.where(MitraApplication.status == status)
        query = query.order_by(desc(MitraApplication.created_at), desc(MitraApplication.id))

        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def _get_pending(db: AsyncSession, application_id: int) -> MitraApplication:
        application = await db.get(MitraApplication, application_id)
        if not application:
            raise ResourceNotFoundError("Application", application_id)
        if application.status != ApplicationStatus.PENDING:
            raise InvalidStateTransitionError(
                "Application has already been reviewed",
                details={"status": application.status.value},
            )
        return application

    @staticmethod
    async def _mark_reviewed(
        db: AsyncSession,
        application: MitraApplication,
        decision: ApplicationStatus,
        admin: Dict[str, Any]
    ) -> None:
        await transition_status(
            db, MitraApplication, application.id,
            ApplicationStatus.PENDING, decision,
            "Application has already been reviewed",
            reviewed_by_admin_id=admin["user_id"],
        )

    @staticmethod
    async def approve(
        db: AsyncSession,
        application_id: int,
        credentials: ApplicationApprove,
        admin: Dict[str, Any]
    ) -> MitraApplication:
        """
        Approve an application and create the mitra.

        The new mitra is VERIFIED, carries the applied expertise and starts
        with a zero balance, so it must top up before accepting orders.

        Raises:
            DuplicateResourceError: If the username or email is taken
            InvalidStateTransitionError: If the application was already reviewed
        """
        application = await ApplicationService._get_pending(db, application_id)

        existing = await db.execute(
            select(User).where(
                or_(User.username == credentials.username, User.email == credentials.email)
            )
        )
        if existing.scalar_one_or_none():
            raise DuplicateResourceError("Username or email already registered")

        await ApplicationService._mark_reviewed(db, application, ApplicationStatus.APPROVED, admin)

        mitra = User(
            email=credentials.email,
            username=credentials.username,
            hashed_password=get_password_hash(credentials.password),
            role=UserRole.MITRA,
            full_name=application.full_name,
            phone=application.phone,
            address=application.address,
            expertise=application.expertise,
            status=ProfileStatus.VERIFIED,
            is_active=True,
            is_superuser=False,
        )
        db.add(mitra)
        await db.flush()
        await AccountLedger.open_account(db, mitra.id)

        application.status = ApplicationStatus.APPROVED
        application.reviewed_by_admin_id = admin["user_id"]
        application.mitra_user_id = mitra.id

        await NotificationService.create_notification(
            db,
            user_id=mitra.id,
            title="Welcome to GetLife",
            message="Your application was approved. Top up your balance to start accepting orders.",
            type=NotificationType.SUCCESS,
        )
        await log_admin_action(
            db,
            admin_id=admin["user_id"],
            admin_username=admin.get("sub"),
            action=AuditAction.MITRA_APPLICATION_APPROVED,
            target_user_id=mitra.id,
            target_username=mitra.username,
            metadata={"application_id": application.id, "expertise": application.expertise.value},
            commit=False,
        )
        await commit_or_raise(db, "application approval")
        await db.refresh(application)
        return application

    @staticmethod
    async def reject(
        db: AsyncSession,
        application_id: int,
        admin: Dict[str, Any],
        reason: Optional[str] = None
    ) -> MitraApplication:
        application = await ApplicationService._get_pending(db, application_id)

        await ApplicationService._mark_reviewed(db, application, ApplicationStatus.REJECTED, admin)
        application.status = ApplicationStatus.REJECTED
        application.reviewed_by_admin_id = admin["user_id"]

        await log_event(
            db,
            action=AuditAction.MITRA_APPLICATION_REJECTED,
            actor_id=admin["user_id"],
            actor_username=admin.get("sub"),
            metadata={"application_id": application.id, "reason": reason},
            commit=False,
        )
        await commit_or_raise(db, "application rejection")
        await db.refresh(application)
        return application
