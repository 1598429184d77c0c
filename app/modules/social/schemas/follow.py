from typing import List
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from app.modules.users.schemas.user import UserSummary

class Follow(BaseModel):
    """Follow edge returned to client"""
    id: int
    follower_id: int
    following_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class FollowEntry(BaseModel):
    user: UserSummary
    followed_at: datetime

class FollowPage(BaseModel):
    total_count: int
    page: int
    page_size: int
    total_pages: int
    users: List[FollowEntry]

class FollowStatus(BaseModel):
    is_following: bool
