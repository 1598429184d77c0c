from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

from app.core.exceptions import ValidationError
from app.modules.media.models.media import TargetType

@dataclass(frozen=True)
class Target:
    """A content item (video or photo) that a like or comment attaches to"""
    kind: TargetType
    id: int

    @classmethod
    def from_ids(cls, video_id: Optional[int] = None, photo_id: Optional[int] = None) -> "Target":
        """Build a target from the wire format, where exactly one ID must be set"""
        if (video_id is None) == (photo_id is None):
            raise ValidationError("Either video_id or photo_id must be provided, but not both")
        if video_id is not None:
            return cls(TargetType.video, video_id)
        return cls(TargetType.photo, photo_id)

    @property
    def redirect_path(self) -> str:
        return f"/{self.kind.value}/{self.id}"

class TargetRef(BaseModel):
    """Request body fields identifying a target"""
    video_id: Optional[int] = None
    photo_id: Optional[int] = None

    def to_target(self) -> Target:
        return Target.from_ids(self.video_id, self.photo_id)
