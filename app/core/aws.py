import logging
from functools import lru_cache

import boto3

from app.core.config import settings

logger = logging.getLogger(__name__)

def _client_kwargs() -> dict:
    kwargs = {"region_name": settings.AWS_REGION}
    if settings.AWS_ENDPOINT_URL:
        kwargs["endpoint_url"] = settings.AWS_ENDPOINT_URL
    if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
        kwargs["aws_access_key_id"] = settings.AWS_ACCESS_KEY_ID
        kwargs["aws_secret_access_key"] = settings.AWS_SECRET_ACCESS_KEY
    else:
        logger.info("AWS credentials not set, falling back to the default boto3 credential chain")
    return kwargs

@lru_cache(maxsize=None)
def get_aws_client(service_name: str):
    """
    Return a cached boto3 client for the given service ("sns", "ses", "sqs").

    boto3 clients are thread-safe, so one instance per service is shared by
    all requests and background tasks.
    """
    logger.info(f"Creating boto3 {service_name} client in {settings.AWS_REGION}")
    if settings.AWS_ENDPOINT_URL:
        logger.info(f"  Endpoint override: {settings.AWS_ENDPOINT_URL}")
    return boto3.client(service_name, **_client_kwargs())
