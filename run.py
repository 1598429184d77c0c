"""Launch the Caster Social API under uvicorn with the configured channels."""
import argparse
import logging

import uvicorn

from app.core.config import settings

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("app")

def log_channel_config() -> None:
    """Warn about notification channels that have no AWS resource configured"""
    channels = {
        "push topic": settings.NOTIFICATION_TOPIC_ARN,
        "queue": settings.NOTIFICATION_QUEUE_URL,
        "email sender": settings.NOTIFICATION_SENDER_EMAIL,
    }
    for name, value in channels.items():
        if value:
            logger.info(f"Notification {name}: {value}")
        else:
            logger.warning(f"Notification {name} is not configured")
    if settings.AWS_ENDPOINT_URL:
        logger.info(f"AWS endpoint override: {settings.AWS_ENDPOINT_URL}")

def main(argv=None):
    parser = argparse.ArgumentParser(description=f"Run the {settings.PROJECT_NAME} server")
    parser.add_argument("--host", default=settings.HOST, help=f"Host to bind (default: {settings.HOST})")
    parser.add_argument("--port", type=int, default=settings.PORT, help=f"Port to bind (default: {settings.PORT})")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (always on with DEBUG)")
    args = parser.parse_args(argv)

    use_reload = args.reload or settings.DEBUG
    logger.info(
        f"Starting {settings.PROJECT_NAME} {settings.VERSION} in {settings.ENVIRONMENT} mode"
        f" on {args.host}:{args.port} (reload {'on' if use_reload else 'off'})"
    )
    log_channel_config()

    uvicorn.run("app.main:app", host=args.host, port=args.port, reload=use_reload)

if __name__ == "__main__":
    main()
