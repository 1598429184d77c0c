from typing import List, Optional
from dataclasses import dataclass
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from app.modules.media.models.media import TargetType
from app.modules.media.schemas.media import TargetRef
from app.modules.social.models.reaction import Reaction as ReactionModel
from app.modules.users.schemas.user import UserSummary

class ReactionCreate(TargetRef):
    pass

class Reaction(BaseModel):
    """Like returned to client"""
    id: int
    user_id: int
    target_type: TargetType
    target_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class ReactionWithUser(Reaction):
    user: Optional[UserSummary] = None

class ReactionPage(BaseModel):
    total_count: int
    page: int
    page_size: int
    total_pages: int
    likes: List[ReactionWithUser]

class LikeStatus(BaseModel):
    has_liked: bool

@dataclass
class ReactionCreated:
    """A new like plus the owner of the liked content, used to pick notification targets"""
    reaction: ReactionModel
    content_owner_id: int
