from typing import Optional
from pydantic import BaseModel, ConfigDict

class UserSummary(BaseModel):
    """Public profile fields embedded in social and messaging responses"""
    id: int
    username: str
    full_name: Optional[str] = None
    profile_picture: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
