import logging
import re
from functools import lru_cache
from typing import Dict, Optional

from botocore.exceptions import ClientError

from app.core.aws import get_aws_client
from app.core.config import settings
from app.core.exceptions import ChannelUnavailableError, ValidationError
from app.modules.notifications.channels.base import provider_errors

logger = logging.getLogger(__name__)

PLATFORMS = ("ios", "android")

# SNS refuses to recreate an endpoint for a known token when its attributes
# differ and names the existing endpoint in the error message
_EXISTING_ENDPOINT = re.compile(r"Endpoint (arn:aws:sns:\S+) already exists")

class DeviceEndpointRegistry:
    """
    Registers mobile devices as SNS platform endpoints and subscribes them to
    the notification topic.
    """

    def __init__(self, sns_client, topic_arn: str, platform_application_arns: Dict[str, str]):
        self.client = sns_client
        self.topic_arn = topic_arn
        self.platform_application_arns = platform_application_arns

    def register_device(self, user_id: int, platform: str, device_token: str) -> str:
        """
        Create (or reuse) the endpoint for a device and subscribe it to the topic.

        Re-registering the same device is not an error. Returns the endpoint ARN.
        Provider failures raise ChannelUnavailableError and are not retried.
        """
        platform = (platform or "").strip().lower()
        device_token = (device_token or "").strip()
        if not device_token:
            raise ValidationError("Device token is required")
        if platform not in PLATFORMS:
            raise ValidationError("Platform must be 'ios' or 'android'")

        application_arn = self.platform_application_arns.get(platform)
        if not application_arn:
            raise ChannelUnavailableError(f"Push is not configured for {platform}", channel="push")

        endpoint_arn = self._create_endpoint(application_arn, device_token, str(user_id))
        self._subscribe(endpoint_arn)

        logger.info(f"Registered {platform} device for user {user_id} as {endpoint_arn}")
        return endpoint_arn

    def _create_endpoint(self, application_arn: str, device_token: str, user_data: str) -> str:
        try:
            response = self.client.create_platform_endpoint(
                PlatformApplicationArn=application_arn,
                Token=device_token,
                CustomUserData=user_data,
            )
            return response["EndpointArn"]
        except ClientError as e:
            existing = self._existing_endpoint(e)
            if not existing:
                logger.error(f"push: error creating platform endpoint for user {user_data}: {e}")
                raise ChannelUnavailableError(f"push unavailable: {e}", channel="push") from e

        # Same token registered with other attributes (e.g. another user on the
        # device): take it over and make sure it is enabled
        logger.info(f"Reusing existing endpoint {existing} for user {user_data}")
        with provider_errors("push", f"updating endpoint {existing}"):
            self.client.set_endpoint_attributes(
                EndpointArn=existing,
                Attributes={"CustomUserData": user_data, "Enabled": "true"},
            )
        return existing

    @staticmethod
    def _existing_endpoint(error: ClientError) -> Optional[str]:
        if error.response.get("Error", {}).get("Code") != "InvalidParameter":
            return None
        match = _EXISTING_ENDPOINT.search(error.response["Error"].get("Message", ""))
        return match.group(1) if match else None

    def _subscribe(self, endpoint_arn: str) -> str:
        # Subscribing an already subscribed endpoint returns the same subscription
        with provider_errors("push", f"subscribing {endpoint_arn} to {self.topic_arn}"):
            response = self.client.subscribe(
                TopicArn=self.topic_arn,
                Protocol="application",
                Endpoint=endpoint_arn,
            )
        return response.get("SubscriptionArn")

@lru_cache(maxsize=None)
def get_device_registry() -> DeviceEndpointRegistry:
    """FastAPI dependency returning the process-wide registry"""
    return DeviceEndpointRegistry(
        get_aws_client("sns"),
        topic_arn=settings.NOTIFICATION_TOPIC_ARN,
        platform_application_arns={
            "ios": settings.IOS_PLATFORM_APPLICATION_ARN,
            "android": settings.ANDROID_PLATFORM_APPLICATION_ARN,
        },
    )
