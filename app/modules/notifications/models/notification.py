import enum

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Enum, ForeignKey, Index
from sqlalchemy.sql import func

from app.db.session import Base

class NotificationType(str, enum.Enum):
    follow = "follow"
    like = "like"
    comment = "comment"
    reply = "reply"
    message = "message"
    system = "system"

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)  # None for system notifications
    type = Column(Enum(NotificationType, name="notification_type"), nullable=False)
    title = Column(String(100), nullable=False)
    body = Column(String(500), nullable=False)
    redirect_path = Column(String(500), nullable=True)  # App route to open, e.g. /video/5
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=func.now(), nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_notifications_recipient_created", "recipient_id", "created_at"),
    )
