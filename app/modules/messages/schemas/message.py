from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from app.modules.users.schemas.user import UserSummary

class MessageCreate(BaseModel):
    recipient_id: int
    content: str

class Message(BaseModel):
    """Direct message returned to client"""
    id: int
    sender_id: int
    recipient_id: int
    content: str
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime
    is_sent: bool = False  # True when the current user is the sender

    model_config = ConfigDict(from_attributes=True)

class Conversation(BaseModel):
    user_id: int
    user: Optional[UserSummary] = None
    last_message: Message
    unread_count: int

class ConversationPage(BaseModel):
    total_count: int
    page: int
    page_size: int
    total_pages: int
    conversations: List[Conversation]

class MessagePage(BaseModel):
    total_count: int
    page: int
    page_size: int
    total_pages: int
    messages: List[Message]
    other_user: UserSummary

class UnreadCount(BaseModel):
    unread_count: int

class MarkedCount(BaseModel):
    message: str
    count: int
