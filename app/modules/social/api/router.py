from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
import logging

from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, total_pages
from app.db.session import get_db
from app.deps import get_current_user
from app.modules.media.schemas.media import Target
from app.modules.users.models.user import User
from app.modules.users.schemas.user import UserSummary
from app.modules.social.schemas.follow import Follow, FollowEntry, FollowPage, FollowStatus
from app.modules.social.schemas.reaction import (
    LikeStatus,
    Reaction as ReactionSchema,
    ReactionCreate,
    ReactionPage,
    ReactionWithUser,
)
from app.modules.social.schemas.comment import (
    Comment as CommentSchema,
    CommentCreate,
    CommentPage,
    CommentUpdate,
)
from app.modules.social.services import follow as follow_service
from app.modules.social.services import reaction as reaction_service
from app.modules.social.services import comment as comment_service
from app.modules.notifications.services.fanout import NotificationFanoutEngine, get_fanout_engine
from app.modules.notifications.services.notification_events import (
    create_comment_notifications,
    create_follow_notification,
    create_like_notification,
    schedule_dispatch,
)

router = APIRouter()
logger = logging.getLogger(__name__)

def _follow_page(rows, total: int, page: int, page_size: int) -> FollowPage:
    return FollowPage(
        total_count=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
        users=[
            FollowEntry(user=UserSummary.model_validate(user), followed_at=follow.created_at)
            for user, follow in rows
        ],
    )

def _owned_comment(db: Session, comment_id: int, user_id: int):
    """Validate comment exists and belongs to the current user"""
    comment = comment_service.get_comment(db, comment_id)
    if not comment:
        raise NotFoundError("Comment not found")
    if comment.author_id != user_id:
        raise ForbiddenError("You can only modify your own comments")
    return comment

# Follows

@router.post("/follow/{user_id}", response_model=Follow, status_code=status.HTTP_201_CREATED)
def follow(
    *,
    db: Session = Depends(get_db),
    user_id: int,
    background_tasks: BackgroundTasks,
    engine: NotificationFanoutEngine = Depends(get_fanout_engine),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Follow another user"""
    edge = follow_service.follow_user(db, current_user.id, user_id)

    notification = create_follow_notification(db, follower_id=current_user.id, followed_id=user_id)
    schedule_dispatch(background_tasks, engine, notification)

    return edge

@router.delete("/follow/{user_id}", response_model=dict)
def unfollow(
    *,
    db: Session = Depends(get_db),
    user_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Stop following a user"""
    follow_service.unfollow_user(db, current_user.id, user_id)
    return {"message": "Unfollowed successfully"}

@router.get("/followers", response_model=FollowPage)
def read_followers(
    db: Session = Depends(get_db),
    user_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Followers of a user, the current user by default"""
    rows, total = follow_service.get_followers(db, user_id or current_user.id, page, page_size)
    return _follow_page(rows, total, page, page_size)

@router.get("/following", response_model=FollowPage)
def read_following(
    db: Session = Depends(get_db),
    user_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Users followed by a user, the current user by default"""
    rows, total = follow_service.get_following(db, user_id or current_user.id, page, page_size)
    return _follow_page(rows, total, page, page_size)

@router.get("/is-following/{user_id}", response_model=FollowStatus)
def read_is_following(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    return FollowStatus(is_following=follow_service.is_following(db, current_user.id, user_id))

# Likes

@router.post("/likes", response_model=ReactionSchema, status_code=status.HTTP_201_CREATED)
def like(
    *,
    db: Session = Depends(get_db),
    like_in: ReactionCreate,
    background_tasks: BackgroundTasks,
    engine: NotificationFanoutEngine = Depends(get_fanout_engine),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Like a video or photo"""
    target = like_in.to_target()
    created = reaction_service.add_reaction(db, current_user.id, target)

    notification = create_like_notification(db, current_user.id, target, created)
    schedule_dispatch(background_tasks, engine, notification)

    return created.reaction

@router.delete("/likes", response_model=dict)
def unlike(
    db: Session = Depends(get_db),
    video_id: Optional[int] = None,
    photo_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Remove a like from a video or photo"""
    reaction_service.remove_reaction(db, current_user.id, Target.from_ids(video_id, photo_id))
    return {"message": "Like removed successfully"}

@router.get("/likes", response_model=ReactionPage)
def read_likes(
    db: Session = Depends(get_db),
    video_id: Optional[int] = None,
    photo_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Likes on a video or photo, newest first"""
    rows, total = reaction_service.get_likes(db, Target.from_ids(video_id, photo_id), page, page_size)

    likes = []
    for reaction, user in rows:
        item = ReactionWithUser.model_validate(reaction)
        item.user = UserSummary.model_validate(user)
        likes.append(item)

    return ReactionPage(
        total_count=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
        likes=likes,
    )

@router.get("/has-liked", response_model=LikeStatus)
def read_has_liked(
    db: Session = Depends(get_db),
    video_id: Optional[int] = None,
    photo_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
) -> Any:
    target = Target.from_ids(video_id, photo_id)
    return LikeStatus(has_liked=reaction_service.has_liked(db, current_user.id, target))

# Comments

@router.post("/comments", response_model=CommentSchema, status_code=status.HTTP_201_CREATED)
def create_comment(
    *,
    db: Session = Depends(get_db),
    comment_in: CommentCreate,
    background_tasks: BackgroundTasks,
    engine: NotificationFanoutEngine = Depends(get_fanout_engine),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Comment on a video or photo, or reply to a comment"""
    target = comment_in.to_target()
    created = comment_service.add_comment(
        db, current_user.id, target, comment_in.content, parent_id=comment_in.parent_id
    )

    for notification in create_comment_notifications(db, current_user.id, target, created):
        schedule_dispatch(background_tasks, engine, notification)

    result = CommentSchema.model_validate(created.comment)
    result.author = UserSummary.model_validate(current_user)
    return result

@router.put("/comments/{comment_id}", response_model=CommentSchema)
def edit_comment(
    *,
    db: Session = Depends(get_db),
    comment_id: int,
    comment_in: CommentUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Edit one of the current user's comments"""
    _owned_comment(db, comment_id, current_user.id)
    comment = comment_service.update_comment(db, comment_id, comment_in.content)

    result = CommentSchema.model_validate(comment)
    result.author = UserSummary.model_validate(current_user)
    result.is_edited = True
    return result

@router.delete("/comments/{comment_id}", response_model=dict)
def remove_comment(
    *,
    db: Session = Depends(get_db),
    comment_id: int,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Delete one of the current user's comments together with its replies"""
    _owned_comment(db, comment_id, current_user.id)
    comment_service.delete_comment(db, comment_id)
    return {"message": "Comment deleted successfully"}

@router.get("/comments", response_model=CommentPage)
def read_comments(
    db: Session = Depends(get_db),
    video_id: Optional[int] = None,
    photo_id: Optional[int] = None,
    parent_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Top-level comments on a target, or the replies to parent_id"""
    target = Target.from_ids(video_id, photo_id)
    comments, total = comment_service.get_comments(db, target, parent_id, page, page_size)
    return CommentPage(
        total_count=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
        comments=comments,
    )
