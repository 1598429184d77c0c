from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.db.session import get_db
from app.deps import get_current_user
from app.modules.users.models.user import User
from app.modules.messages.schemas.message import (
    ConversationPage,
    MarkedCount,
    Message as MessageSchema,
    MessageCreate,
    MessagePage,
    UnreadCount,
)
from app.modules.messages.services.message import send_message, get_unread_message_count
from app.modules.messages.services.conversation import (
    get_conversation,
    list_conversations,
    mark_conversation_as_read,
    mark_message_as_read,
)
from app.modules.notifications.services.fanout import NotificationFanoutEngine, get_fanout_engine
from app.modules.notifications.services.notification_events import (
    create_message_notification,
    schedule_dispatch,
)

router = APIRouter()

@router.post("", response_model=MessageSchema, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=MessageSchema, status_code=status.HTTP_201_CREATED)
def create_message(
    *,
    db: Session = Depends(get_db),
    message_in: MessageCreate,
    background_tasks: BackgroundTasks,
    engine: NotificationFanoutEngine = Depends(get_fanout_engine),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Send a direct message"""
    message = send_message(db, current_user.id, message_in.recipient_id, message_in.content)

    notification = create_message_notification(db, sender_id=current_user.id, recipient_id=message_in.recipient_id)
    schedule_dispatch(background_tasks, engine, notification)

    result = MessageSchema.model_validate(message)
    result.is_sent = True
    return result

@router.get("/conversations", response_model=ConversationPage)
def read_conversations(
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Conversations of the current user, most recent first"""
    return list_conversations(db, current_user.id, page, page_size)

@router.get("/conversations/{user_id}", response_model=MessagePage)
def read_conversation(
    user_id: int,
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Messages exchanged with a user; unread messages on the page are marked read"""
    return get_conversation(db, current_user.id, user_id, page, page_size)

@router.post("/conversations/{user_id}/read", response_model=MarkedCount)
def read_whole_conversation(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    count = mark_conversation_as_read(db, current_user.id, user_id)
    return MarkedCount(message=f"Marked {count} messages as read", count=count)

@router.get("/unread-count", response_model=UnreadCount)
def read_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    return UnreadCount(unread_count=get_unread_message_count(db, current_user.id))

@router.post("/{message_id}/read", response_model=MessageSchema)
def read_message(
    message_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Mark one received message as read"""
    message = mark_message_as_read(db, message_id, current_user.id)
    return MessageSchema.model_validate(message)
