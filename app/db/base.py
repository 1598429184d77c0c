# Import all models here so Alembic and create_all can detect them
from app.db.session import Base

from app.modules.users.models.user import User
from app.modules.media.models.media import Video, Photo
from app.modules.social.models.follow import UserFollow
from app.modules.social.models.reaction import Reaction
from app.modules.social.models.comment import Comment
from app.modules.messages.models.message import Message
from app.modules.notifications.models.notification import Notification
