from typing import List, Tuple
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import AlreadyExistsError, InvalidTargetError, NotFoundError
from app.core.pagination import page_bounds
from app.modules.social.models.follow import UserFollow
from app.modules.users.models.user import User
from app.modules.users.services.user import user_exists

logger = logging.getLogger(__name__)

def get_follow(db: Session, follower_id: int, following_id: int):
    """Get follow edge by follower and followed user IDs"""
    return db.query(UserFollow).filter(
        UserFollow.follower_id == follower_id,
        UserFollow.following_id == following_id
    ).first()

def is_following(db: Session, follower_id: int, following_id: int) -> bool:
    return get_follow(db, follower_id, following_id) is not None

def follow_user(db: Session, follower_id: int, target_id: int) -> UserFollow:
    """
    Create a follow edge from follower_id to target_id.

    The unique constraint decides whether the edge already exists, so two
    concurrent calls for the same pair yield one edge and one AlreadyExistsError.
    """
    if follower_id == target_id:
        raise InvalidTargetError("You cannot follow yourself")
    if not user_exists(db, target_id):
        raise InvalidTargetError(f"User with ID {target_id} was not found")

    follow = UserFollow(follower_id=follower_id, following_id=target_id)
    db.add(follow)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyExistsError("You are already following this user")
    db.refresh(follow)

    logger.info(f"User {follower_id} followed user {target_id}")
    return follow

def unfollow_user(db: Session, follower_id: int, target_id: int) -> None:
    deleted = db.query(UserFollow).filter(
        UserFollow.follower_id == follower_id,
        UserFollow.following_id == target_id
    ).delete(synchronize_session=False)
    db.commit()

    if not deleted:
        raise NotFoundError("You are not following this user")
    logger.info(f"User {follower_id} unfollowed user {target_id}")

def get_followers(db: Session, user_id: int, page: int = 1, page_size: int = 20) -> Tuple[List[Tuple[User, UserFollow]], int]:
    """Users following user_id, newest first, with the total count"""
    skip, limit = page_bounds(page, page_size)
    query = (
        db.query(User, UserFollow)
        .join(UserFollow, UserFollow.follower_id == User.id)
        .filter(UserFollow.following_id == user_id)
    )
    total = query.count()
    rows = query.order_by(UserFollow.created_at.desc()).offset(skip).limit(limit).all()
    return rows, total

def get_following(db: Session, user_id: int, page: int = 1, page_size: int = 20) -> Tuple[List[Tuple[User, UserFollow]], int]:
    """Users that user_id follows, newest first, with the total count"""
    skip, limit = page_bounds(page, page_size)
    query = (
        db.query(User, UserFollow)
        .join(UserFollow, UserFollow.following_id == User.id)
        .filter(UserFollow.follower_id == user_id)
    )
    total = query.count()
    rows = query.order_by(UserFollow.created_at.desc()).offset(skip).limit(limit).all()
    return rows, total
