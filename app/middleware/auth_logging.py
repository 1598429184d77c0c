from fastapi import Request
import logging
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings

logger = logging.getLogger("app")

# Every route under these prefixes requires a bearer token
PROTECTED_PREFIXES = tuple(
    f"{settings.API_V1_STR}/{name}" for name in ("social", "messages", "notifications")
)

class AuthLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if not request.headers.get("Authorization") and path.startswith(PROTECTED_PREFIXES):
            logger.warning(f"Protected endpoint {request.method} {path} accessed without auth header")

        response = await call_next(request)

        # Log auth-related status codes
        if response.status_code in (401, 403):
            logger.warning(f"Auth error: {response.status_code} on {request.method} {path}")

        return response
