"""Tests for the notification fan-out engine and device registration."""

import json

import pytest
from botocore.exceptions import ClientError

from app.core.exceptions import ChannelUnavailableError, ValidationError
from app.modules.notifications.models.notification import NotificationType
from app.modules.notifications.schemas.notification import NotificationMessage
from app.modules.notifications.services.devices import DeviceEndpointRegistry


def _client_error(code="InternalError", message="boom", operation="Publish"):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def _message(notification_id=10, recipient_id=2):
    return NotificationMessage(
        id=notification_id,
        recipient_id=recipient_id,
        type=NotificationType.comment,
        title="New Comment",
        body="ann commented on your <video>",
        sender_id=3,
        redirect_path="/video/5",
    )


class TestDispatch:

    @pytest.mark.asyncio
    async def test_queue_only_by_default(self, fanout_engine, aws_clients):
        outcome = await fanout_engine.dispatch(_message())

        assert outcome.success
        assert [r.channel for r in outcome.channels] == ["queue"]
        assert outcome.channel("queue").provider_message_id == "queue-msg-1"
        aws_clients["ses"].send_email.assert_not_called()
        aws_clients["sns"].publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_all_channels(self, fanout_engine, aws_clients):
        outcome = await fanout_engine.dispatch(_message(), send_email=True, send_push=True)

        assert outcome.success
        assert outcome.failures == []
        assert {r.channel for r in outcome.channels} == {"queue", "email", "push"}

        email_kwargs = aws_clients["ses"].send_email.call_args.kwargs
        assert email_kwargs["Destination"] == {"ToAddresses": ["user2@example.com"]}
        assert email_kwargs["Message"]["Subject"]["Data"] == "New Comment"
        assert email_kwargs["Message"]["Body"]["Html"]["Data"] == "<p>ann commented on your &lt;video&gt;</p>"

        push_kwargs = aws_clients["sns"].publish.call_args.kwargs
        gcm = json.loads(json.loads(push_kwargs["Message"])["GCM"])
        assert gcm["data"] == {"notification_id": 10, "type": "comment", "redirect_path": "/video/5"}

    @pytest.mark.asyncio
    async def test_queue_failure_fails_dispatch_but_keeps_other_channels(self, fanout_engine, aws_clients):
        aws_clients["sqs"].send_message.side_effect = _client_error(operation="SendMessage")

        outcome = await fanout_engine.dispatch(_message(), send_email=True, send_push=True)

        assert not outcome.success
        assert not outcome.channel("queue").delivered
        assert outcome.channel("email").delivered
        assert outcome.channel("push").delivered
        assert [channel for channel, _ in outcome.failures] == ["queue"]

    @pytest.mark.asyncio
    async def test_push_failure_does_not_fail_dispatch(self, fanout_engine, aws_clients):
        aws_clients["sns"].publish.side_effect = _client_error()

        outcome = await fanout_engine.dispatch(_message(), send_push=True)

        assert outcome.success
        assert outcome.failures[0][0] == "push"
        assert "push unavailable" in outcome.failures[0][1]

    @pytest.mark.asyncio
    async def test_missing_email_address(self, fanout_engine, aws_clients):
        fanout_engine.resolve_email = lambda user_id: None

        outcome = await fanout_engine.dispatch(_message(), send_email=True, send_push=True)

        assert outcome.success
        assert not outcome.channel("email").delivered
        assert outcome.channel("push").delivered
        aws_clients["ses"].send_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_error_is_captured(self, fanout_engine, aws_clients):
        aws_clients["ses"].send_email.side_effect = RuntimeError("unexpected")

        outcome = await fanout_engine.dispatch(_message(), send_email=True)

        assert outcome.success
        assert outcome.channel("email").error == "unexpected"

    @pytest.mark.asyncio
    async def test_direct_push(self, fanout_engine, aws_clients):
        endpoint = "arn:aws:sns:us-east-1:123456789012:endpoint/GCM/caster/xyz"

        result = await fanout_engine.send_direct_push(endpoint, _message())

        assert result.delivered
        assert aws_clients["sns"].publish.call_args.kwargs["TargetArn"] == endpoint
        aws_clients["sqs"].send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_bulk(self, fanout_engine, aws_clients):
        aws_clients["sqs"].send_message_batch.side_effect = lambda QueueUrl, Entries: {
            "Successful": [{"Id": e["Id"], "MessageId": "q"} for e in Entries],
        }

        results = await fanout_engine.dispatch_bulk([_message(i) for i in range(12)])

        assert len(results) == 12
        assert all(r.delivered for r in results)
        assert aws_clients["sqs"].send_message_batch.call_count == 2
        assert await fanout_engine.dispatch_bulk([]) == []


class TestDeviceRegistry:

    def test_register_device(self, device_registry, aws_clients):
        endpoint_arn = device_registry.register_device(7, "iOS", " token-123 ")

        assert endpoint_arn.endswith("endpoint-1")
        create_kwargs = aws_clients["sns"].create_platform_endpoint.call_args.kwargs
        assert create_kwargs["Token"] == "token-123"
        assert create_kwargs["CustomUserData"] == "7"
        subscribe_kwargs = aws_clients["sns"].subscribe.call_args.kwargs
        assert subscribe_kwargs["Protocol"] == "application"
        assert subscribe_kwargs["Endpoint"] == endpoint_arn

    def test_existing_endpoint_is_reused(self, device_registry, aws_clients):
        existing = "arn:aws:sns:us-east-1:123456789012:endpoint/APNS/caster/old"
        aws_clients["sns"].create_platform_endpoint.side_effect = _client_error(
            code="InvalidParameter",
            message=f"Invalid parameter: Token Reason: Endpoint {existing} already exists with the same Token, but different attributes.",
            operation="CreatePlatformEndpoint",
        )

        assert device_registry.register_device(8, "ios", "token") == existing

        aws_clients["sns"].set_endpoint_attributes.assert_called_once_with(
            EndpointArn=existing,
            Attributes={"CustomUserData": "8", "Enabled": "true"},
        )

    def test_validation(self, device_registry):
        with pytest.raises(ValidationError):
            device_registry.register_device(1, "windows", "token")
        with pytest.raises(ValidationError):
            device_registry.register_device(1, "android", "  ")

    def test_unconfigured_platform(self, aws_clients):
        registry = DeviceEndpointRegistry(aws_clients["sns"], "topic", {"ios": "arn", "android": ""})
        with pytest.raises(ChannelUnavailableError):
            registry.register_device(1, "android", "token")

    def test_provider_failure(self, device_registry, aws_clients):
        aws_clients["sns"].subscribe.side_effect = _client_error(operation="Subscribe")
        with pytest.raises(ChannelUnavailableError):
            device_registry.register_device(1, "android", "token")
