from typing import List, Optional, Tuple
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.pagination import page_bounds
from app.modules.notifications.models.notification import Notification
from app.modules.notifications.schemas.notification import NotificationCreate, Notification as NotificationSchema
from app.modules.users.schemas.user import UserSummary
from app.modules.users.services.user import get_users_by_ids

def get_notification(db: Session, notification_id: int) -> Optional[Notification]:
    """Get notification by ID"""
    return db.query(Notification).filter(Notification.id == notification_id).first()

def get_owned_notification(db: Session, notification_id: int, user_id: int) -> Notification:
    """Get a notification addressed to user_id, or raise NotFound/Forbidden"""
    notification = get_notification(db, notification_id)
    if not notification:
        raise NotFoundError("Notification not found")
    if notification.recipient_id != user_id:
        raise ForbiddenError("Not enough permissions")
    return notification

def get_user_notifications(
    db: Session,
    user_id: int,
    page: int = 1,
    page_size: int = 20,
    unread_only: bool = False,
) -> Tuple[List[NotificationSchema], int]:
    """Get a page of a user's notifications, newest first, with the total count"""
    skip, limit = page_bounds(page, page_size)
    query = db.query(Notification).filter(Notification.recipient_id == user_id)

    if unread_only:
        query = query.filter(Notification.is_read == False)

    total = query.count()
    notifications = (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

    senders = get_users_by_ids(db, [n.sender_id for n in notifications if n.sender_id])

    result = []
    for notification in notifications:
        schema = NotificationSchema.model_validate(notification)
        sender = senders.get(notification.sender_id)
        if sender:
            schema.sender = UserSummary.model_validate(sender)
        result.append(schema)

    return result, total

def get_unread_count(db: Session, user_id: int) -> int:
    return db.query(Notification).filter(
        Notification.recipient_id == user_id,
        Notification.is_read == False
    ).count()

def create_notification(db: Session, notification_in: NotificationCreate) -> Notification:
    """Create a new notification"""
    notification = Notification(**notification_in.model_dump())

    db.add(notification)
    db.commit()
    db.refresh(notification)

    return notification

def mark_as_read(db: Session, notification: Notification) -> Notification:
    """Mark a notification as read; read_at is only set on the first call"""
    # Only the first caller flips the row, so read_at is set exactly once
    db.query(Notification).filter(
        Notification.id == notification.id,
        Notification.is_read == False
    ).update(
        {Notification.is_read: True, Notification.read_at: datetime.now(timezone.utc)},
        synchronize_session=False,
    )
    db.commit()
    db.refresh(notification)

    return notification

def mark_all_as_read(db: Session, user_id: int) -> int:
    """Mark all notifications as read for a user"""
    result = db.query(Notification).filter(
        Notification.recipient_id == user_id,
        Notification.is_read == False
    ).update(
        {Notification.is_read: True, Notification.read_at: datetime.now(timezone.utc)},
        synchronize_session=False,
    )

    db.commit()

    return result

def delete_notification(db: Session, notification: Notification) -> None:
    """Delete a notification"""
    db.delete(notification)
    db.commit()

def delete_all_notifications(db: Session, user_id: int) -> int:
    """Delete all notifications for a user"""
    result = db.query(Notification).filter(
        Notification.recipient_id == user_id
    ).delete(synchronize_session=False)
    db.commit()

    return result
