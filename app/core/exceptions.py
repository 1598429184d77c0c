"""
Service-level error kinds.

Services raise these instead of HTTPException so the same rules apply whether
they are called from a router, a background task or a test. The handler
registered in app.main renders them as {"detail": message} with status_code.
"""
from typing import Optional


class ServiceError(Exception):
    """Base class for errors raised by the service layer"""
    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = 400
    default_message = "The request is invalid"


class InvalidTargetError(ValidationError):
    default_message = "The referenced target does not exist or is not allowed"


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "The requested resource was not found"


class AlreadyExistsError(ServiceError):
    status_code = 409
    default_message = "The resource already exists"


class ForbiddenError(ServiceError):
    status_code = 403
    default_message = "You do not have permission to access this resource"


class ChannelUnavailableError(ServiceError):
    status_code = 503
    default_message = "The delivery channel is unavailable"

    def __init__(self, message: Optional[str] = None, channel: Optional[str] = None):
        self.channel = channel
        super().__init__(message)


class UnauthenticatedError(ServiceError):
    status_code = 401
    default_message = "User not authenticated"
