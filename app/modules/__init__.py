"""
Modules package initialization.
This package contains all the functional modules of the application.
"""

from app.modules import users
from app.modules import media
from app.modules import social
from app.modules import messages
from app.modules import notifications
