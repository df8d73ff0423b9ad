"""
Notification Schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Dict, Any
from getlife.app.models.enums import UserRole
from getlife.app.models.notification import NotificationType


class NotificationResponse(BaseModel):
    id: int
    type: NotificationType
    title: str
    message: str
    metadata_payload: Optional[Dict[str, Any]]
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime]

    class Config:
        from_attributes = True


class BroadcastRequest(BaseModel):
    role_filter: Optional[UserRole] = None  # None sends to everyone
    type: NotificationType = NotificationType.INFO
    title: str
    message: str
