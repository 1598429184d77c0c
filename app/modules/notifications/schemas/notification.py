from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from app.modules.notifications.models.notification import NotificationType
from app.modules.users.schemas.user import UserSummary

class NotificationCreate(BaseModel):
    recipient_id: int
    type: NotificationType
    title: str = Field(..., max_length=100)
    body: str = Field(..., max_length=500)
    sender_id: Optional[int] = None
    redirect_path: Optional[str] = Field(None, max_length=500)

class NotificationMessage(BaseModel):
    """
    The durable fields of a notification, detached from the database session.

    This is what the fan-out engine delivers and what the queue stores.
    """
    id: int
    recipient_id: int
    type: NotificationType
    title: str
    body: str
    sender_id: Optional[int] = None
    redirect_path: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class Notification(NotificationMessage):
    """Notification model returned to client"""
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime] = None
    sender: Optional[UserSummary] = None

class NotificationPage(BaseModel):
    total_count: int
    page: int
    page_size: int
    total_pages: int
    notifications: List[Notification]

class UnreadCount(BaseModel):
    unread_count: int

class DeviceRegistration(BaseModel):
    device_token: str
    platform: str  # "ios" or "android"

class DeviceRegistered(BaseModel):
    message: str = "Device registered successfully"
    endpoint_arn: str

