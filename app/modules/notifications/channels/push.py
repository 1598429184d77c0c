import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .base import Channel, SendReceipt, provider_errors

logger = logging.getLogger(__name__)

@dataclass
class PushPayload:
    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)
    # Attached as a message attribute when publishing to a topic
    recipient_id: Optional[int] = None

def build_envelope(payload: PushPayload) -> Dict[str, str]:
    """
    SNS "json" message structure with one payload per platform family.

    APNS wraps the alert in "aps"; GCM (Firebase) uses "notification". Custom
    data rides alongside in both.
    """
    apns = json.dumps({
        "aps": {
            "alert": {"title": payload.title, "body": payload.body},
            "sound": "default",
        },
        "data": payload.data,
    })
    gcm = json.dumps({
        "notification": {"title": payload.title, "body": payload.body},
        "data": payload.data,
    })
    return {
        "default": payload.body,
        "APNS": apns,
        "APNS_SANDBOX": apns,
        "GCM": gcm,
    }

class PushAdapter(Channel):
    """Mobile push through SNS, to a topic or to one platform endpoint"""
    name = "push"

    def __init__(self, sns_client, topic_arn: str):
        self.client = sns_client
        self.topic_arn = topic_arn

    def send(self, recipient: str, payload: PushPayload) -> SendReceipt:
        request = {
            "Message": json.dumps(build_envelope(payload)),
            "MessageStructure": "json",
        }
        if recipient == self.topic_arn:
            request["TopicArn"] = recipient
            if payload.recipient_id is not None:
                request["MessageAttributes"] = {
                    "recipient_id": {"DataType": "String", "StringValue": str(payload.recipient_id)},
                }
        else:
            request["TargetArn"] = recipient

        with provider_errors(self.name, f"publishing to {recipient}"):
            response = self.client.publish(**request)

        logger.info(f"Push notification sent to {recipient} with title {payload.title}")
        return SendReceipt(delivered=True, provider_message_id=response.get("MessageId"))
