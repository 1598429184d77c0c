from sqlalchemy import Column, Integer, DateTime, Enum, Text, ForeignKey, Index
from sqlalchemy.orm import relationship, backref
from sqlalchemy.sql import func

from app.db.session import Base
from app.modules.media.models.media import TargetType

class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(Text, nullable=False)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    target_type = Column(Enum(TargetType, name="target_type"), nullable=False)
    target_id = Column(Integer, nullable=False)
    parent_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    # Deleting a comment removes its whole reply subtree, at any depth
    replies = relationship(
        "Comment",
        cascade="all, delete-orphan",
        backref=backref("parent", remote_side=[id]),
    )

    __table_args__ = (
        Index("idx_comments_target", "target_type", "target_id", "created_at"),
    )
