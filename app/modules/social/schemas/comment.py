from typing import List, Optional
from dataclasses import dataclass
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from app.modules.media.models.media import TargetType
from app.modules.media.schemas.media import TargetRef
from app.modules.social.models.comment import Comment as CommentModel
from app.modules.users.schemas.user import UserSummary

class CommentCreate(TargetRef):
    content: str
    parent_id: Optional[int] = None

class CommentUpdate(BaseModel):
    content: str

class CommentInDBBase(BaseModel):
    id: int
    content: str
    author_id: int
    target_type: TargetType
    target_id: int
    parent_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class Comment(CommentInDBBase):
    """Comment model returned to client"""
    author: Optional[UserSummary] = None
    replies_count: int = 0
    is_edited: bool = False

class CommentPage(BaseModel):
    total_count: int
    page: int
    page_size: int
    total_pages: int
    comments: List[Comment]

@dataclass
class CommentCreated:
    """
    A new comment plus the users who may need to hear about it.

    parent_owner_id is only set for replies.
    """
    comment: CommentModel
    content_owner_id: int
    parent_owner_id: Optional[int] = None
