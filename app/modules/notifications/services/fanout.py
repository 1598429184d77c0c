"""
Notification fan-out.

One notification goes to up to three independent channels: the SQS queue
(always), SES email and SNS push (on request). The channel calls run
concurrently in the threadpool because boto3 blocks; their results are joined
into a DispatchOutcome. Only the queue write decides whether the dispatch
succeeded, since the queue is the one durable copy.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from html import escape
from typing import Callable, List, Optional, Sequence, Tuple

from starlette.concurrency import run_in_threadpool

from app.core.aws import get_aws_client
from app.core.config import settings
from app.core.exceptions import ChannelUnavailableError
from app.db.session import SessionLocal
from app.modules.notifications.channels.email import EmailAdapter, EmailPayload
from app.modules.notifications.channels.push import PushAdapter, PushPayload
from app.modules.notifications.channels.queue import BatchItemResult, BulkQueueAdapter, QueueAdapter
from app.modules.notifications.schemas.notification import NotificationMessage
from app.modules.users.services.user import get_user_email

logger = logging.getLogger(__name__)

EmailResolver = Callable[[int], Optional[str]]

@dataclass
class ChannelResult:
    channel: str
    delivered: bool
    provider_message_id: Optional[str] = None
    error: Optional[str] = None

@dataclass
class DispatchOutcome:
    notification_id: int
    success: bool
    channels: List[ChannelResult] = field(default_factory=list)

    @property
    def failures(self) -> List[Tuple[str, str]]:
        """(channel, error) for every channel that did not deliver"""
        return [(r.channel, r.error) for r in self.channels if not r.delivered]

    def channel(self, name: str) -> Optional[ChannelResult]:
        return next((r for r in self.channels if r.channel == name), None)

def _resolve_email_from_db(user_id: int) -> Optional[str]:
    db = SessionLocal()
    try:
        return get_user_email(db, user_id)
    finally:
        db.close()

class NotificationFanoutEngine:
    def __init__(
        self,
        queue: QueueAdapter,
        bulk_queue: BulkQueueAdapter,
        email: EmailAdapter,
        push: PushAdapter,
        resolve_email: EmailResolver = _resolve_email_from_db,
    ):
        self.queue = queue
        self.bulk_queue = bulk_queue
        self.email = email
        self.push = push
        self.resolve_email = resolve_email

    async def dispatch(
        self,
        notification: NotificationMessage,
        send_email: bool = False,
        send_push: bool = False,
        email_subject: Optional[str] = None,
        email_html_body: Optional[str] = None,
    ) -> DispatchOutcome:
        """
        Deliver one notification.

        The queue is always written. Email goes to the recipient's address on
        file and push to the notification topic. A failing channel is recorded
        in the outcome and never stops the others.
        """
        tasks = [self._queue(notification)]
        if send_email:
            tasks.append(self._email(notification, email_subject, email_html_body))
        if send_push:
            tasks.append(self._push(self.push.topic_arn, notification))

        results = list(await asyncio.gather(*tasks))
        outcome = DispatchOutcome(
            notification_id=notification.id,
            success=results[0].delivered,
            channels=results,
        )

        if not outcome.success:
            logger.error(f"Notification {notification.id} was not queued: {results[0].error}")
        for channel, error in outcome.failures:
            logger.warning(f"Notification {notification.id}: {channel} delivery failed: {error}")
        return outcome

    async def send_direct_push(self, endpoint_arn: str, notification: NotificationMessage) -> ChannelResult:
        """Push to one known device endpoint, without a queue copy"""
        return await self._push(endpoint_arn, notification)

    async def dispatch_bulk(self, notifications: Sequence[NotificationMessage]) -> List[BatchItemResult]:
        """Queue many notifications; no email or push for the bulk path"""
        if not notifications:
            return []
        return await run_in_threadpool(self.bulk_queue.send_batch, list(notifications))

    async def _run(self, channel: str, fn, *args) -> ChannelResult:
        try:
            receipt = await run_in_threadpool(fn, *args)
        except ChannelUnavailableError as e:
            return ChannelResult(channel=channel, delivered=False, error=e.message)
        except Exception as e:
            logger.exception(f"Unexpected {channel} failure")
            return ChannelResult(channel=channel, delivered=False, error=str(e))
        return ChannelResult(
            channel=channel,
            delivered=receipt.delivered,
            provider_message_id=receipt.provider_message_id,
        )

    async def _queue(self, notification: NotificationMessage) -> ChannelResult:
        return await self._run(self.queue.name, self.queue.send, str(notification.recipient_id), notification)

    async def _push(self, target_arn: str, notification: NotificationMessage) -> ChannelResult:
        payload = PushPayload(
            title=notification.title,
            body=notification.body,
            data={
                "notification_id": notification.id,
                "type": notification.type.value,
                "redirect_path": notification.redirect_path,
            },
            recipient_id=notification.recipient_id,
        )
        return await self._run(self.push.name, self.push.send, target_arn, payload)

    async def _email(
        self,
        notification: NotificationMessage,
        subject: Optional[str],
        html_body: Optional[str],
    ) -> ChannelResult:
        try:
            address = await run_in_threadpool(self.resolve_email, notification.recipient_id)
        except Exception as e:
            logger.exception(f"Could not resolve email for user {notification.recipient_id}")
            return ChannelResult(channel=self.email.name, delivered=False, error=str(e))
        if not address:
            return ChannelResult(
                channel=self.email.name,
                delivered=False,
                error=f"No email address on file for user {notification.recipient_id}",
            )

        payload = EmailPayload(
            subject=subject or notification.title,
            html_body=html_body or f"<p>{escape(notification.body)}</p>",
            text_body=notification.body,
        )
        return await self._run(self.email.name, self.email.send, address, payload)

def build_fanout_engine() -> NotificationFanoutEngine:
    """Wire the channels from settings; the only place they read configuration"""
    sqs = get_aws_client("sqs")
    return NotificationFanoutEngine(
        queue=QueueAdapter(sqs, settings.NOTIFICATION_QUEUE_URL),
        bulk_queue=BulkQueueAdapter(sqs, settings.NOTIFICATION_QUEUE_URL, settings.QUEUE_BATCH_SIZE),
        email=EmailAdapter(get_aws_client("ses"), settings.NOTIFICATION_SENDER_EMAIL),
        push=PushAdapter(get_aws_client("sns"), settings.NOTIFICATION_TOPIC_ARN),
    )

@lru_cache(maxsize=None)
def get_fanout_engine() -> NotificationFanoutEngine:
    """FastAPI dependency returning the process-wide engine"""
    return build_fanout_engine()
