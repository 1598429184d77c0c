from sqlalchemy import Boolean, CheckConstraint, Column, Integer, DateTime, Text, ForeignKey, Index
from sqlalchemy.sql import func

from app.db.session import Base

class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)  # set once, on the first read
    created_at = Column(DateTime(timezone=True), default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("sender_id != recipient_id", name="no_self_message"),
        Index("idx_messages_pair_created", "sender_id", "recipient_id", "created_at"),
    )
