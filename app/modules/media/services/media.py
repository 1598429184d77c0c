from typing import Optional
from sqlalchemy.orm import Session

from app.modules.media.models.media import Photo, TargetType, Video
from app.modules.media.schemas.media import Target

_MODELS = {
    TargetType.video: Video,
    TargetType.photo: Photo,
}

def get_content_owner_id(db: Session, target: Target) -> Optional[int]:
    """Owner of the target content, or None if the content does not exist"""
    model = _MODELS[target.kind]
    row = db.query(model.user_id).filter(model.id == target.id).first()
    return row[0] if row else None
