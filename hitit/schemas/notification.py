"""Notification Pydantic schemas."""

from datetime import datetime
from typing import List, Optional

from hitit.models.notification import NotificationType
from hitit.schemas.base import CamelModel


class NotificationOut(CamelModel):
    id: int
    sender_id: int
    type: NotificationType
    jam_id: Optional[int] = None
    message: str
    is_read: bool = False
    created_at: Optional[datetime] = None


class NotificationList(CamelModel):
    notifications: List[NotificationOut]
    unread_count: int
