from typing import List, Optional, Tuple
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import AlreadyExistsError, InvalidTargetError, NotFoundError
from app.core.pagination import page_bounds
from app.modules.media.schemas.media import Target
from app.modules.media.services.media import get_content_owner_id
from app.modules.social.models.reaction import Reaction
from app.modules.social.schemas.reaction import ReactionCreated
from app.modules.users.models.user import User

logger = logging.getLogger(__name__)

def _target_filter(target: Target):
    return (Reaction.target_type == target.kind, Reaction.target_id == target.id)

def get_reaction(db: Session, user_id: int, target: Target) -> Optional[Reaction]:
    """Get a user's like on a target"""
    return (
        db.query(Reaction)
        .filter(Reaction.user_id == user_id, *_target_filter(target))
        .first()
    )

def has_liked(db: Session, user_id: int, target: Target) -> bool:
    return get_reaction(db, user_id, target) is not None

def add_reaction(db: Session, user_id: int, target: Target) -> ReactionCreated:
    """
    Like a video or photo.

    Raises InvalidTargetError if the content does not exist and
    AlreadyExistsError if the user already likes it. Duplicate detection is
    left to the (user_id, target_type, target_id) unique constraint.
    """
    owner_id = get_content_owner_id(db, target)
    if owner_id is None:
        raise InvalidTargetError(f"{target.kind.value.capitalize()} with ID {target.id} was not found")

    reaction = Reaction(user_id=user_id, target_type=target.kind, target_id=target.id)
    db.add(reaction)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyExistsError("You have already liked this content")
    db.refresh(reaction)

    logger.info(f"User {user_id} liked {target.kind.value} {target.id}")
    return ReactionCreated(reaction=reaction, content_owner_id=owner_id)

def remove_reaction(db: Session, user_id: int, target: Target) -> None:
    deleted = (
        db.query(Reaction)
        .filter(Reaction.user_id == user_id, *_target_filter(target))
        .delete(synchronize_session=False)
    )
    db.commit()

    if not deleted:
        raise NotFoundError("Like not found")
    logger.info(f"User {user_id} removed like on {target.kind.value} {target.id}")

def get_likes(db: Session, target: Target, page: int = 1, page_size: int = 20) -> Tuple[List[Tuple[Reaction, User]], int]:
    """Likes on a target, newest first, with the liking users"""
    skip, limit = page_bounds(page, page_size)
    query = (
        db.query(Reaction, User)
        .join(User, User.id == Reaction.user_id)
        .filter(*_target_filter(target))
    )
    total = query.count()
    rows = query.order_by(Reaction.created_at.desc(), Reaction.id.desc()).offset(skip).limit(limit).all()
    return rows, total
