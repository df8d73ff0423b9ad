"""
Notification Service.

Handles creation and state management of in-app notifications.
Writes are flushed, never committed: notifications ride on the caller's
transaction so they appear only if the change they describe is saved.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, desc
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List

from getlife.app.models.notification import Notification, NotificationType
from getlife.app.models.user import User
from getlife.app.models.enums import UserRole


class NotificationService:

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Notification:
        """Create a single notification."""
        notif = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            metadata_payload=metadata
        )
        db.add(notif)
        await db.flush()
        return notif

    @staticmethod
    async def broadcast(
        db: AsyncSession,
        title: str,
        message: str,
        role: Optional[UserRole] = None,
        type: NotificationType = NotificationType.INFO
    ) -> int:
        """Broadcast notification to all active users, optionally filtered by role."""
        query = select(User.id).where(User.is_active == True)
        if role:
            query = query.where(User.role == role)

        result = await db.execute(query)
        user_ids = result.scalars().all()

        notifications = [
            Notification(
                user_id=uid,
                title=title,
                message=message,
                type=type
            )
            for uid in user_ids
        ]

        if notifications:
            db.add_all(notifications)
            await db.flush()

        return len(notifications)

    @staticmethod
    async def list_for_user(
        db: AsyncSession,
        user_id: int,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[Notification]:
        """Newest first."""
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read == False)
        query = query.order_by(desc(Notification.created_at), desc(Notification.id)).limit(limit)

        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def mark_read(db: AsyncSession, notification_id: int, user_id: int) -> bool:
        """Mark a notification as read."""
        stmt = update(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id
        ).values(
            is_read=True,
            read_at=datetime.now(timezone.utc)
        )
        result = await db.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    async def mark_all_read(db: AsyncSession, user_id: int) -> int:
        """Mark all notifications for user as read."""
        stmt = update(Notification).where(
            Notification.user_id == user_id,
            Notification.is_read == False
        ).values(
            is_read=True,
            read_at=datetime.now(timezone.utc)
        )
        result = await db.execute(stmt)
        return result.rowcount
