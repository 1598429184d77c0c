from sqlalchemy import Column, Integer, DateTime, Enum, ForeignKey, UniqueConstraint, Index
from sqlalchemy.sql import func

from app.db.session import Base
from app.modules.media.models.media import TargetType

class Reaction(Base):
    """A like on a video or photo"""
    __tablename__ = "likes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    target_type = Column(Enum(TargetType, name="target_type"), nullable=False)
    target_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "target_type", "target_id", name="unique_like"),
        Index("idx_likes_target", "target_type", "target_id", "created_at"),
    )
