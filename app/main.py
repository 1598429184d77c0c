from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exception_handlers import http_exception_handler, request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

from app.core.config import settings
from app.core.exceptions import ServiceError
from app.middleware.request_logging import RequestLoggingMiddleware
from app.middleware.auth_logging import AuthLoggingMiddleware
from app.modules.social.api.router import router as social_router
from app.modules.messages.api.router import router as messages_router
from app.modules.notifications.api.router import router as notifications_router
from app.db.init_db import create_all_tables

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("app")

async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

# Initialize the FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    exception_handlers={
        RequestValidationError: request_validation_exception_handler,
        HTTPException: http_exception_handler,
        ServiceError: service_error_handler,
    },
    debug=settings.DEBUG,
    description="Follows, likes, comments, direct messages and notification delivery",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    swagger_ui_parameters={"defaultModelsExpandDepth": -1},
)

@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting server in {settings.ENVIRONMENT} mode")

    create_all_tables()

# Add middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(AuthLoggingMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(social_router, prefix=f"{settings.API_V1_STR}/social", tags=["social"])
app.include_router(messages_router, prefix=f"{settings.API_V1_STR}/messages", tags=["messages"])
app.include_router(notifications_router, prefix=f"{settings.API_V1_STR}/notifications", tags=["notifications"])

@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "documentation": "/docs" if settings.DEBUG else None,
    }