from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, total_pages
from app.db.session import get_db
from app.deps import get_current_user
from app.modules.users.models.user import User
from app.modules.notifications.schemas.notification import (
    DeviceRegistered,
    DeviceRegistration,
    Notification as NotificationSchema,
    NotificationPage,
    UnreadCount,
)
from app.modules.notifications.services.devices import DeviceEndpointRegistry, get_device_registry
from app.modules.notifications.services.fanout import NotificationFanoutEngine, get_fanout_engine
from app.modules.notifications.services.notification import (
    get_owned_notification,
    get_user_notifications,
    get_unread_count,
    mark_as_read,
    mark_all_as_read,
    delete_notification,
    delete_all_notifications
)
from app.modules.notifications.services.notification_events import (
    create_system_notification,
    schedule_direct_push,
)

router = APIRouter()

@router.get("", response_model=NotificationPage)
@router.get("/", response_model=NotificationPage)
def read_notifications(
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    unread_only: bool = False,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get user's notifications with pagination and filter options"""
    notifications, total = get_user_notifications(db, current_user.id, page, page_size, unread_only)
    return NotificationPage(
        total_count=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
        notifications=notifications,
    )

@router.get("/unread-count", response_model=UnreadCount)
def read_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    return UnreadCount(unread_count=get_unread_count(db, current_user.id))

@router.post("/read-all", response_model=dict)
def mark_all_notifications_as_read(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Mark all of the user's notifications as read"""
    count = mark_all_as_read(db, current_user.id)

    return {
        "message": f"Marked {count} notifications as read",
        "count": count
    }

@router.post("/devices", response_model=DeviceRegistered, status_code=status.HTTP_201_CREATED)
def register_device(
    *,
    db: Session = Depends(get_db),
    device_in: DeviceRegistration,
    background_tasks: BackgroundTasks,
    registry: DeviceEndpointRegistry = Depends(get_device_registry),
    engine: NotificationFanoutEngine = Depends(get_fanout_engine),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Register a mobile device for push notifications"""
    endpoint_arn = registry.register_device(current_user.id, device_in.platform, device_in.device_token)

    notification = create_system_notification(
        db,
        recipient_id=current_user.id,
        title="Notifications Enabled",
        body="You will now receive notifications on this device",
    )
    schedule_direct_push(background_tasks, engine, endpoint_arn, notification)

    return DeviceRegistered(endpoint_arn=endpoint_arn)

@router.post("/{notification_id}/read", response_model=NotificationSchema)
def mark_notification_as_read(
    *,
    db: Session = Depends(get_db),
    notification_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Mark a specific notification as read"""
    notification = get_owned_notification(db, notification_id, current_user.id)
    return mark_as_read(db, notification)

@router.delete("/{notification_id}", response_model=dict)
def delete_notification_by_id(
    *,
    db: Session = Depends(get_db),
    notification_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Delete a specific notification"""
    notification = get_owned_notification(db, notification_id, current_user.id)
    delete_notification(db, notification)

    return {"message": "Notification deleted successfully"}

@router.delete("", response_model=dict)
@router.delete("/", response_model=dict)
def delete_all_user_notifications(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Delete all notifications for the current user"""
    count = delete_all_notifications(db, current_user.id)

    return {
        "message": f"Deleted {count} notifications",
        "count": count
    }
