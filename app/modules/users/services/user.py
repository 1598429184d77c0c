from typing import Dict, Iterable, Optional
from sqlalchemy.orm import Session

from app.modules.users.models.user import User

def get_user(db: Session, user_id: int) -> Optional[User]:
    """Get user by ID"""
    return db.query(User).filter(User.id == user_id).first()

def user_exists(db: Session, user_id: int) -> bool:
    return db.query(User.id).filter(User.id == user_id).first() is not None

def get_users_by_ids(db: Session, user_ids: Iterable[int]) -> Dict[int, User]:
    """Get users keyed by ID in a single query"""
    ids = set(user_ids)
    if not ids:
        return {}
    return {user.id: user for user in db.query(User).filter(User.id.in_(ids)).all()}

def get_display_name(db: Session, user_id: int) -> str:
    """Name used in notification text, falling back to the username"""
    user = get_user(db, user_id)
    if not user:
        return "Someone"
    return user.full_name or user.username

def get_user_email(db: Session, user_id: int) -> Optional[str]:
    row = db.query(User.email).filter(User.id == user_id, User.is_active == True).first()
    return row[0] if row else None
