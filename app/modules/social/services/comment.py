from typing import Dict, List, Optional, Tuple
from datetime import datetime, timezone
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import InvalidTargetError, NotFoundError, ValidationError
from app.core.pagination import page_bounds
from app.modules.media.schemas.media import Target
from app.modules.media.services.media import get_content_owner_id
from app.modules.social.models.comment import Comment
from app.modules.social.schemas.comment import CommentCreated, Comment as CommentSchema
from app.modules.users.schemas.user import UserSummary
from app.modules.users.services.user import get_users_by_ids

logger = logging.getLogger(__name__)

def _clean_content(content: Optional[str]) -> str:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Comment content is required")
    if len(content) > settings.COMMENT_MAX_LENGTH:
        raise ValidationError(f"Comment content must be at most {settings.COMMENT_MAX_LENGTH} characters")
    return content

def get_comment(db: Session, comment_id: int) -> Optional[Comment]:
    """Get comment by ID"""
    return db.query(Comment).filter(Comment.id == comment_id).first()

def add_comment(
    db: Session,
    author_id: int,
    target: Target,
    content: str,
    parent_id: Optional[int] = None,
) -> CommentCreated:
    """
    Comment on a video or photo, optionally as a reply to another comment.

    Returns the comment together with the content owner and, for replies, the
    parent comment's author so the caller can decide who to notify.
    """
    content = _clean_content(content)

    owner_id = get_content_owner_id(db, target)
    if owner_id is None:
        raise InvalidTargetError(f"{target.kind.value.capitalize()} with ID {target.id} was not found")

    parent_owner_id = None
    if parent_id is not None:
        parent = get_comment(db, parent_id)
        if not parent:
            raise NotFoundError("Parent comment not found")
        if parent.target_type != target.kind or parent.target_id != target.id:
            raise ValidationError("Parent comment belongs to a different video or photo")
        parent_owner_id = parent.author_id

    comment = Comment(
        author_id=author_id,
        target_type=target.kind,
        target_id=target.id,
        parent_id=parent_id,
        content=content,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    logger.info(f"User {author_id} commented on {target.kind.value} {target.id} (comment {comment.id})")
    return CommentCreated(comment=comment, content_owner_id=owner_id, parent_owner_id=parent_owner_id)

def update_comment(db: Session, comment_id: int, content: str) -> Comment:
    """Edit comment content. Ownership is checked by the caller."""
    content = _clean_content(content)
    comment = get_comment(db, comment_id)
    if not comment:
        raise NotFoundError("Comment not found")

    comment.content = content
    comment.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(comment)
    return comment

def delete_comment(db: Session, comment_id: int) -> None:
    """Delete a comment and its replies. Ownership is checked by the caller."""
    comment = get_comment(db, comment_id)
    if not comment:
        raise NotFoundError("Comment not found")

    db.delete(comment)
    db.commit()
    logger.info(f"Deleted comment {comment_id}")

def _replies_counts(db: Session, comment_ids: List[int]) -> Dict[int, int]:
    if not comment_ids:
        return {}
    rows = (
        db.query(Comment.parent_id, func.count(Comment.id))
        .filter(Comment.parent_id.in_(comment_ids))
        .group_by(Comment.parent_id)
        .all()
    )
    return dict(rows)

def get_comments(
    db: Session,
    target: Target,
    parent_id: Optional[int] = None,
    page: int = 1,
    page_size: int = 20,
) -> Tuple[List[CommentSchema], int]:
    """
    One level of a target's comment tree, newest first.

    parent_id=None lists top-level comments; otherwise the direct replies of
    that comment.
    """
    skip, limit = page_bounds(page, page_size)
    query = db.query(Comment).filter(
        Comment.target_type == target.kind,
        Comment.target_id == target.id,
        Comment.parent_id == parent_id,
    )
    total = query.count()
    comments = query.order_by(Comment.created_at.desc(), Comment.id.desc()).offset(skip).limit(limit).all()

    authors = get_users_by_ids(db, [c.author_id for c in comments])
    replies = _replies_counts(db, [c.id for c in comments])

    result = []
    for comment in comments:
        author = authors.get(comment.author_id)
        result.append(CommentSchema(
            id=comment.id,
            content=comment.content,
            author_id=comment.author_id,
            target_type=comment.target_type,
            target_id=comment.target_id,
            parent_id=comment.parent_id,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
            author=UserSummary.model_validate(author) if author else None,
            replies_count=replies.get(comment.id, 0),
            is_edited=comment.updated_at is not None,
        ))
    return result, total
