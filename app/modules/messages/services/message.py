from typing import Optional
import logging

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.modules.messages.models.message import Message
from app.modules.users.services.user import user_exists

logger = logging.getLogger(__name__)

def get_message(db: Session, message_id: int) -> Optional[Message]:
    """Get message by ID"""
    return db.query(Message).filter(Message.id == message_id).first()

def send_message(db: Session, sender_id: int, recipient_id: int, content: str) -> Message:
    """Store a direct message from sender_id to recipient_id"""
    content = (content or "").strip()
    if not content:
        raise ValidationError("Message content is required")
    if len(content) > settings.MESSAGE_MAX_LENGTH:
        raise ValidationError(f"Message content must be at most {settings.MESSAGE_MAX_LENGTH} characters")
    if sender_id == recipient_id:
        raise ValidationError("You cannot send a message to yourself")
    if not user_exists(db, recipient_id):
        raise NotFoundError("Recipient not found")

    message = Message(sender_id=sender_id, recipient_id=recipient_id, content=content)
    db.add(message)
    db.commit()
    db.refresh(message)

    logger.info(f"User {sender_id} sent message {message.id} to user {recipient_id}")
    return message

def get_unread_message_count(db: Session, user_id: int) -> int:
    """Unread messages addressed to user_id across all conversations"""
    return db.query(Message).filter(
        Message.recipient_id == user_id,
        Message.is_read == False
    ).count()
