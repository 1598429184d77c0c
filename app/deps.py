from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core import security
from app.core.config import settings
from app.core.exceptions import UnauthenticatedError
from app.db.session import get_db
from app.modules.users.models.user import User
from app.modules.users.services.user import get_user

# Bearer tokens are issued by the identity provider; a missing token is
# reported as UnauthenticatedError rather than FastAPI's default 401 body
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)

def get_current_user(db: Session = Depends(get_db), token: Optional[str] = Depends(oauth2_scheme)) -> User:
    """
    Dependency for getting current authenticated user
    """
    if not token:
        raise UnauthenticatedError()

    subject = security.verify_access_token(token)
    if subject is None:
        raise UnauthenticatedError("Could not validate credentials")

    try:
        user_id = int(subject)
    except ValueError:
        raise UnauthenticatedError("Could not validate credentials")

    user = get_user(db, user_id)
    if not user or not user.is_active:
        raise UnauthenticatedError("User not found or inactive")

    return user
