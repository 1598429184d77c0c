"""Tests for the SNS, SES and SQS channel adapters."""

import json

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from unittest.mock import MagicMock

from app.core.exceptions import ChannelUnavailableError
from app.modules.notifications.channels.email import EmailAdapter, EmailPayload
from app.modules.notifications.channels.push import PushAdapter, PushPayload, build_envelope
from app.modules.notifications.channels.queue import BulkQueueAdapter, QueueAdapter
from app.modules.notifications.models.notification import NotificationType
from app.modules.notifications.schemas.notification import NotificationMessage

TOPIC_ARN = "arn:aws:sns:us-east-1:123456789012:notifications"
QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/notifications"


def _client_error(code="InternalError", message="boom", operation="Publish"):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def _message(notification_id=1, recipient_id=2):
    return NotificationMessage(
        id=notification_id,
        recipient_id=recipient_id,
        type=NotificationType.like,
        title="New Like",
        body="ann liked your video",
        sender_id=3,
        redirect_path="/video/5",
    )


class TestPush:

    def test_envelope_carries_every_platform(self):
        envelope = build_envelope(PushPayload(title="T", body="B", data={"type": "like"}))

        assert envelope["default"] == "B"
        apns = json.loads(envelope["APNS"])
        assert apns["aps"]["alert"] == {"title": "T", "body": "B"}
        assert apns["aps"]["sound"] == "default"
        assert apns["data"] == {"type": "like"}
        assert envelope["APNS_SANDBOX"] == envelope["APNS"]
        gcm = json.loads(envelope["GCM"])
        assert gcm["notification"] == {"title": "T", "body": "B"}
        assert gcm["data"] == {"type": "like"}

    def test_topic_publish_tags_recipient(self):
        sns = MagicMock()
        sns.publish.return_value = {"MessageId": "m-1"}

        receipt = PushAdapter(sns, TOPIC_ARN).send(TOPIC_ARN, PushPayload("T", "B", recipient_id=42))

        assert receipt.delivered
        assert receipt.provider_message_id == "m-1"
        kwargs = sns.publish.call_args.kwargs
        assert kwargs["TopicArn"] == TOPIC_ARN
        assert kwargs["MessageStructure"] == "json"
        assert kwargs["MessageAttributes"]["recipient_id"]["StringValue"] == "42"
        assert "TargetArn" not in kwargs

    def test_endpoint_publish_uses_target_arn(self):
        sns = MagicMock()
        sns.publish.return_value = {"MessageId": "m-2"}
        endpoint = "arn:aws:sns:us-east-1:123456789012:endpoint/APNS/caster/abc"

        PushAdapter(sns, TOPIC_ARN).send(endpoint, PushPayload("T", "B"))

        kwargs = sns.publish.call_args.kwargs
        assert kwargs["TargetArn"] == endpoint
        assert "TopicArn" not in kwargs

    def test_provider_error_becomes_channel_unavailable(self):
        sns = MagicMock()
        sns.publish.side_effect = _client_error()

        with pytest.raises(ChannelUnavailableError) as exc_info:
            PushAdapter(sns, TOPIC_ARN).send(TOPIC_ARN, PushPayload("T", "B"))
        assert exc_info.value.channel == "push"


class TestEmail:

    def test_send_email(self):
        ses = MagicMock()
        ses.send_email.return_value = {"MessageId": "e-1"}

        receipt = EmailAdapter(ses, "no-reply@example.com").send(
            "bob@example.com", EmailPayload("Subject", "<p>Hi</p>", "Hi")
        )

        assert receipt.provider_message_id == "e-1"
        kwargs = ses.send_email.call_args.kwargs
        assert kwargs["Source"] == "no-reply@example.com"
        assert kwargs["Destination"] == {"ToAddresses": ["bob@example.com"]}
        assert kwargs["Message"]["Body"]["Html"] == {"Charset": "UTF-8", "Data": "<p>Hi</p>"}
        assert kwargs["Message"]["Body"]["Text"]["Data"] == "Hi"

    def test_html_only(self):
        ses = MagicMock()
        ses.send_email.return_value = {"MessageId": "e-2"}

        EmailAdapter(ses, "no-reply@example.com").send("bob@example.com", EmailPayload("S", "<b>x</b>"))

        assert "Text" not in ses.send_email.call_args.kwargs["Message"]["Body"]

    def test_connection_error(self):
        ses = MagicMock()
        ses.send_email.side_effect = EndpointConnectionError(endpoint_url="https://email.example")

        with pytest.raises(ChannelUnavailableError):
            EmailAdapter(ses, "no-reply@example.com").send("bob@example.com", EmailPayload("S", "x"))


class TestQueue:

    def test_send_message_body_and_attributes(self):
        sqs = MagicMock()
        sqs.send_message.return_value = {"MessageId": "q-1"}

        receipt = QueueAdapter(sqs, QUEUE_URL).send("2", _message())

        assert receipt.provider_message_id == "q-1"
        kwargs = sqs.send_message.call_args.kwargs
        assert kwargs["QueueUrl"] == QUEUE_URL
        assert json.loads(kwargs["MessageBody"]) == {
            "id": 1,
            "recipient_id": 2,
            "type": "like",
            "title": "New Like",
            "body": "ann liked your video",
            "sender_id": 3,
            "redirect_path": "/video/5",
        }
        assert kwargs["MessageAttributes"]["NotificationType"]["StringValue"] == "like"
        assert kwargs["MessageAttributes"]["RecipientId"]["StringValue"] == "2"

    def test_bulk_chunks_to_ten(self):
        sqs = MagicMock()
        sqs.send_message_batch.side_effect = lambda QueueUrl, Entries: {
            "Successful": [{"Id": e["Id"], "MessageId": f"q-{e['Id']}"} for e in Entries],
            "Failed": [],
        }

        results = BulkQueueAdapter(sqs, QUEUE_URL).send_batch([_message(i) for i in range(23)])

        sizes = [len(call.kwargs["Entries"]) for call in sqs.send_message_batch.call_args_list]
        assert sizes == [10, 10, 3]
        assert len(results) == 23
        assert all(r.delivered for r in results)
        assert [r.notification_id for r in results] == list(range(23))

    def test_bulk_partial_failure(self):
        sqs = MagicMock()
        sqs.send_message_batch.side_effect = [
            _client_error(operation="SendMessageBatch"),
            {
                "Successful": [{"Id": "0", "MessageId": "q-a"}],
                "Failed": [{"Id": "1", "Code": "InvalidMessageContents", "Message": "bad body"}],
            },
        ]

        results = BulkQueueAdapter(sqs, QUEUE_URL, batch_size=2).send_batch([_message(i) for i in range(4)])

        assert [r.delivered for r in results] == [False, False, True, False]
        assert results[3].error == "bad body"
        assert results[2].provider_message_id == "q-a"

    def test_batch_size_limit(self):
        with pytest.raises(ValueError):
            BulkQueueAdapter(MagicMock(), QUEUE_URL, batch_size=11)
