"""
Notification events service.
This module creates the notification record for each social action and
schedules its fan-out once the response has been sent.
"""
from typing import Optional
import logging

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.modules.media.schemas.media import Target
from app.modules.notifications.models.notification import Notification, NotificationType
from app.modules.notifications.schemas.notification import NotificationCreate, NotificationMessage
from app.modules.notifications.services.fanout import NotificationFanoutEngine
from app.modules.notifications.services.notification import create_notification
from app.modules.social.schemas.comment import CommentCreated
from app.modules.social.schemas.reaction import ReactionCreated
from app.modules.users.services.user import get_display_name

# Set up logger
logger = logging.getLogger(__name__)

def schedule_dispatch(
    background_tasks: BackgroundTasks,
    engine: NotificationFanoutEngine,
    notification: Optional[Notification],
    send_email: bool = False,
    send_push: bool = True,
) -> None:
    """Queue the fan-out to run after the response; a no-op without a notification"""
    if notification is None:
        return
    message = NotificationMessage.model_validate(notification)
    background_tasks.add_task(engine.dispatch, message, send_email=send_email, send_push=send_push)

def _create(db: Session, notification_in: NotificationCreate) -> Optional[Notification]:
    # The social action has already been committed; losing its notification
    # must not turn it into an error
    try:
        notification = create_notification(db, notification_in)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating {notification_in.type.value} notification for user {notification_in.recipient_id}: {e}")
        return None
    logger.info(
        f"Created {notification_in.type.value} notification for user {notification_in.recipient_id}"
        f" from user {notification_in.sender_id}"
    )
    return notification

def create_follow_notification(db: Session, follower_id: int, followed_id: int) -> Optional[Notification]:
    """
    Create a notification when a user gains a follower.

    Args:
        db: Database session
        follower_id: ID of the user who followed
        followed_id: ID of the user who was followed

    Returns:
        The notification, or None if it could not be created
    """
    return _create(db, NotificationCreate(
        recipient_id=followed_id,
        sender_id=follower_id,
        type=NotificationType.follow,
        title="New Follower",
        body=f"{get_display_name(db, follower_id)} started following you",
        redirect_path=f"/profile/{follower_id}",
    ))

def create_like_notification(db: Session, liker_id: int, target: Target, created: ReactionCreated) -> Optional[Notification]:
    """
    Create a notification when a video or photo is liked.

    Returns None when users like their own content.
    """
    if created.content_owner_id == liker_id:
        logger.debug(f"User {liker_id} liked their own {target.kind.value}, no notification created")
        return None

    return _create(db, NotificationCreate(
        recipient_id=created.content_owner_id,
        sender_id=liker_id,
        type=NotificationType.like,
        title="New Like",
        body=f"{get_display_name(db, liker_id)} liked your {target.kind.value}",
        redirect_path=target.redirect_path,
    ))

def create_comment_notifications(db: Session, commenter_id: int, target: Target, created: CommentCreated) -> list:
    """
    Create the notifications for a new comment.

    The content owner hears about the comment and, for replies, the parent
    comment's author hears about the reply. Nobody is notified about their own
    activity, and an owner replying in their own thread gets only the reply
    notification.

    Returns:
        The notifications that were created
    """
    notifications = []
    name = get_display_name(db, commenter_id)

    reply_recipient = created.parent_owner_id
    if reply_recipient is not None and reply_recipient != commenter_id:
        notifications.append(_create(db, NotificationCreate(
            recipient_id=reply_recipient,
            sender_id=commenter_id,
            type=NotificationType.reply,
            title="New Reply",
            body=f"{name} replied to your comment",
            redirect_path=target.redirect_path,
        )))

    owner_id = created.content_owner_id
    if owner_id != commenter_id and owner_id != reply_recipient:
        notifications.append(_create(db, NotificationCreate(
            recipient_id=owner_id,
            sender_id=commenter_id,
            type=NotificationType.comment,
            title="New Comment",
            body=f"{name} commented on your {target.kind.value}",
            redirect_path=target.redirect_path,
        )))

    return [n for n in notifications if n is not None]

def create_message_notification(db: Session, sender_id: int, recipient_id: int) -> Optional[Notification]:
    """Create a notification when a direct message is received"""
    return _create(db, NotificationCreate(
        recipient_id=recipient_id,
        sender_id=sender_id,
        type=NotificationType.message,
        title="New Message",
        body=f"{get_display_name(db, sender_id)} sent you a message",
        redirect_path=f"/messages/{sender_id}",
    ))

def create_system_notification(db: Session, recipient_id: int, title: str, body: str, redirect_path: Optional[str] = None) -> Optional[Notification]:
    """Create a notification that has no sending user"""
    return _create(db, NotificationCreate(
        recipient_id=recipient_id,
        type=NotificationType.system,
        title=title,
        body=body,
        redirect_path=redirect_path,
    ))

def schedule_direct_push(
    background_tasks: BackgroundTasks,
    engine: NotificationFanoutEngine,
    endpoint_arn: str,
    notification: Optional[Notification],
) -> None:
    """Queue a push to one device endpoint to run after the response"""
    if notification is None:
        return
    message = NotificationMessage.model_validate(notification)
    background_tasks.add_task(engine.send_direct_push, endpoint_arn, message)
