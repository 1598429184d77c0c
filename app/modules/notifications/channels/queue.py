import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from app.modules.notifications.schemas.notification import NotificationMessage

from .base import Channel, SendReceipt, provider_errors

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 10

def serialize_notification(notification: NotificationMessage) -> str:
    return json.dumps({
        "id": notification.id,
        "recipient_id": notification.recipient_id,
        "type": notification.type.value,
        "title": notification.title,
        "body": notification.body,
        "sender_id": notification.sender_id,
        "redirect_path": notification.redirect_path,
    })

def message_attributes(notification: NotificationMessage) -> Dict[str, Dict[str, str]]:
    return {
        "NotificationType": {"DataType": "String", "StringValue": notification.type.value},
        "RecipientId": {"DataType": "String", "StringValue": str(notification.recipient_id)},
    }

class QueueAdapter(Channel):
    """Durable copy of every notification on SQS for downstream consumers"""
    name = "queue"

    def __init__(self, sqs_client, queue_url: str):
        self.client = sqs_client
        self.queue_url = queue_url

    def send(self, recipient: str, payload: NotificationMessage) -> SendReceipt:
        """recipient is the recipient user id; the queue itself is fixed"""
        with provider_errors(self.name, f"queueing notification {payload.id} for user {recipient}"):
            response = self.client.send_message(
                QueueUrl=self.queue_url,
                MessageBody=serialize_notification(payload),
                MessageAttributes=message_attributes(payload),
            )

        logger.info(f"Queue message sent to {self.queue_url} for notification {payload.id}")
        return SendReceipt(delivered=True, provider_message_id=response.get("MessageId"))

@dataclass
class BatchItemResult:
    notification_id: int
    delivered: bool
    provider_message_id: Optional[str] = None
    error: Optional[str] = None

class BulkQueueAdapter:
    """
    Queues many notifications with SendMessageBatch.

    Items are chunked to the SQS batch limit. Each item gets its own result;
    a rejected entry, or a whole chunk failing, never stops the other chunks.
    """
    name = "queue"

    def __init__(self, sqs_client, queue_url: str, batch_size: int = MAX_BATCH_SIZE):
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        self.client = sqs_client
        self.queue_url = queue_url
        self.batch_size = batch_size

    def send_batch(self, notifications: Sequence[NotificationMessage]) -> List[BatchItemResult]:
        results: List[BatchItemResult] = []
        for start in range(0, len(notifications), self.batch_size):
            results.extend(self._send_chunk(notifications[start:start + self.batch_size]))

        failed = sum(1 for r in results if not r.delivered)
        logger.info(f"Bulk queued {len(results) - failed}/{len(results)} notifications to {self.queue_url}")
        return results

    def _send_chunk(self, chunk: Sequence[NotificationMessage]) -> List[BatchItemResult]:
        # Entry ids only need to be unique within one call
        entries = [
            {
                "Id": str(index),
                "MessageBody": serialize_notification(notification),
                "MessageAttributes": message_attributes(notification),
            }
            for index, notification in enumerate(chunk)
        ]
        try:
            response = self.client.send_message_batch(QueueUrl=self.queue_url, Entries=entries)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"queue: batch of {len(chunk)} notifications failed: {e}")
            return [
                BatchItemResult(notification_id=n.id, delivered=False, error=str(e))
                for n in chunk
            ]

        successful = {item["Id"]: item for item in response.get("Successful", [])}
        failed = {item["Id"]: item for item in response.get("Failed", [])}

        results = []
        for index, notification in enumerate(chunk):
            entry_id = str(index)
            if entry_id in successful:
                results.append(BatchItemResult(
                    notification_id=notification.id,
                    delivered=True,
                    provider_message_id=successful[entry_id].get("MessageId"),
                ))
            else:
                failure = failed.get(entry_id, {})
                error = failure.get("Message") or failure.get("Code") or "No result returned for entry"
                logger.warning(f"queue: notification {notification.id} rejected: {error}")
                results.append(BatchItemResult(notification_id=notification.id, delivered=False, error=error))
        return results
