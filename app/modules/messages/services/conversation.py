"""
Conversation views over the flat messages table.

A conversation is never stored: it is the set of messages between the current
user and one counterpart, summarised by its latest message and the number of
messages the current user has not read yet.
"""
from datetime import datetime, timezone
import logging

from sqlalchemy import and_, case, func, or_
from sqlalchemy.orm import Session

from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.pagination import page_bounds, total_pages
from app.modules.messages.models.message import Message
from app.modules.messages.services.message import get_message
from app.modules.messages.schemas.message import (
    Conversation,
    ConversationPage,
    Message as MessageSchema,
    MessagePage,
)
from app.modules.users.schemas.user import UserSummary
from app.modules.users.services.user import get_user, get_users_by_ids

logger = logging.getLogger(__name__)

def _to_schema(message: Message, current_user_id: int) -> MessageSchema:
    schema = MessageSchema.model_validate(message)
    schema.is_sent = message.sender_id == current_user_id
    return schema

def _between(user_id: int, other_id: int):
    return or_(
        and_(Message.sender_id == user_id, Message.recipient_id == other_id),
        and_(Message.sender_id == other_id, Message.recipient_id == user_id),
    )

def list_conversations(db: Session, current_user_id: int, page: int = 1, page_size: int = 20) -> ConversationPage:
    """
    Latest message per counterpart, most recent conversation first.

    Equal created_at values are ordered by message id so the latest message and
    the conversation order are deterministic.
    """
    skip, limit = page_bounds(page, page_size)

    counterpart = case(
        (Message.sender_id == current_user_id, Message.recipient_id),
        else_=Message.sender_id,
    )
    ranked = (
        db.query(
            Message.id.label("message_id"),
            func.row_number().over(
                partition_by=counterpart,
                order_by=(Message.created_at.desc(), Message.id.desc()),
            ).label("position"),
        )
        .filter(or_(Message.sender_id == current_user_id, Message.recipient_id == current_user_id))
        .subquery()
    )
    latest = (
        db.query(Message)
        .join(ranked, Message.id == ranked.c.message_id)
        .filter(ranked.c.position == 1)
    )

    total = latest.count()
    messages = latest.order_by(Message.created_at.desc(), Message.id.desc()).offset(skip).limit(limit).all()

    counterpart_ids = [
        m.recipient_id if m.sender_id == current_user_id else m.sender_id
        for m in messages
    ]
    unread = dict(
        db.query(Message.sender_id, func.count(Message.id))
        .filter(
            Message.recipient_id == current_user_id,
            Message.sender_id.in_(counterpart_ids),
            Message.is_read == False,
        )
        .group_by(Message.sender_id)
        .all()
    ) if counterpart_ids else {}
    users = get_users_by_ids(db, counterpart_ids)

    conversations = []
    for message, other_id in zip(messages, counterpart_ids):
        other = users.get(other_id)
        conversations.append(Conversation(
            user_id=other_id,
            user=UserSummary.model_validate(other) if other else None,
            last_message=_to_schema(message, current_user_id),
            unread_count=unread.get(other_id, 0),
        ))

    return ConversationPage(
        total_count=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
        conversations=conversations,
    )

def get_conversation(
    db: Session,
    current_user_id: int,
    counterpart_id: int,
    page: int = 1,
    page_size: int = 20,
) -> MessagePage:
    """
    One page of the messages between two users, newest first.

    Viewing the page marks the unread messages in it that were sent to the
    current user as read, in one UPDATE. Unread messages on other pages keep
    their state.
    """
    skip, limit = page_bounds(page, page_size)

    other = get_user(db, counterpart_id)
    if not other:
        raise NotFoundError("User not found")

    query = db.query(Message).filter(_between(current_user_id, counterpart_id))
    total = query.count()
    messages = query.order_by(Message.created_at.desc(), Message.id.desc()).offset(skip).limit(limit).all()

    unread_ids = [
        m.id for m in messages
        if m.recipient_id == current_user_id and not m.is_read
    ]
    if unread_ids:
        updated = (
            db.query(Message)
            .filter(Message.id.in_(unread_ids), Message.is_read == False)
            .update(
                {Message.is_read: True, Message.read_at: datetime.now(timezone.utc)},
                synchronize_session=False,
            )
        )
        db.commit()
        # Reload the page so the response reflects the new read state
        for message in messages:
            db.refresh(message)
        logger.info(f"Marked {updated} messages from user {counterpart_id} as read for user {current_user_id}")

    return MessagePage(
        total_count=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
        messages=[_to_schema(m, current_user_id) for m in messages],
        other_user=UserSummary.model_validate(other),
    )

def mark_message_as_read(db: Session, message_id: int, current_user_id: int) -> Message:
    """Mark one message as read; a no-op if it already is"""
    message = get_message(db, message_id)
    if not message:
        raise NotFoundError("Message not found")
    if message.recipient_id != current_user_id:
        raise ForbiddenError("Only the recipient can mark a message as read")

    # Conditional update so a concurrent reader cannot overwrite read_at
    updated = (
        db.query(Message)
        .filter(Message.id == message.id, Message.is_read == False)
        .update(
            {Message.is_read: True, Message.read_at: datetime.now(timezone.utc)},
            synchronize_session=False,
        )
    )
    db.commit()
    if updated:
        logger.info(f"Marked message {message.id} as read for user {current_user_id}")
    db.refresh(message)
    return message

def mark_conversation_as_read(db: Session, current_user_id: int, counterpart_id: int) -> int:
    """Mark every unread message from counterpart_id as read and return how many changed"""
    count = (
        db.query(Message)
        .filter(
            Message.sender_id == counterpart_id,
            Message.recipient_id == current_user_id,
            Message.is_read == False,
        )
        .update(
            {Message.is_read: True, Message.read_at: datetime.now(timezone.utc)},
            synchronize_session=False,
        )
    )
    db.commit()
    return count
