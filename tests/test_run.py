"""Tests for the server launcher."""

import logging
from unittest.mock import patch

import run
from app.core.config import settings


def test_defaults_come_from_settings():
    with patch("run.uvicorn.run") as uvicorn_run:
        run.main([])

    uvicorn_run.assert_called_once_with(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


def test_command_line_overrides():
    with patch("run.uvicorn.run") as uvicorn_run:
        run.main(["--host", "127.0.0.1", "--port", "9001", "--reload"])

    kwargs = uvicorn_run.call_args.kwargs
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9001
    assert kwargs["reload"] is True


def test_unconfigured_channels_are_reported(caplog):
    with patch.object(settings, "NOTIFICATION_TOPIC_ARN", ""), \
            patch.object(settings, "NOTIFICATION_QUEUE_URL", "https://sqs.example/queue"), \
            caplog.at_level(logging.INFO, logger="app"):
        run.log_channel_config()

    assert "Notification push topic is not configured" in caplog.text
    assert "Notification queue: https://sqs.example/queue" in caplog.text
