import os

# Must be set before app.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test_secret_key")

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.db.base  # noqa: F401
from app.core.security import create_access_token
from app.db.session import Base, get_db
from app.main import app as fastapi_app
from app.modules.media.models.media import Photo, Video
from app.modules.notifications.channels.email import EmailAdapter
from app.modules.notifications.channels.push import PushAdapter
from app.modules.notifications.channels.queue import BulkQueueAdapter, QueueAdapter
from app.modules.notifications.services.devices import DeviceEndpointRegistry, get_device_registry
from app.modules.notifications.services.fanout import NotificationFanoutEngine, get_fanout_engine
from app.modules.users.models.user import User

TOPIC_ARN = "arn:aws:sns:us-east-1:123456789012:notifications"
QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/notifications"
IOS_APP_ARN = "arn:aws:sns:us-east-1:123456789012:app/APNS/caster"
ANDROID_APP_ARN = "arn:aws:sns:us-east-1:123456789012:app/GCM/caster"


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(username=None, full_name=None, email=None, is_active=True):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            full_name=full_name,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_video(db):
    def _make(owner):
        video = Video(user_id=owner.id, title="clip")
        db.add(video)
        db.commit()
        db.refresh(video)
        return video

    return _make


@pytest.fixture
def make_photo(db):
    def _make(owner):
        photo = Photo(user_id=owner.id, title="shot")
        db.add(photo)
        db.commit()
        db.refresh(photo)
        return photo

    return _make


@pytest.fixture
def aws_clients():
    """MagicMock stand-ins for the sqs, ses and sns boto3 clients"""
    sqs = MagicMock(name="sqs")
    sqs.send_message.return_value = {"MessageId": "queue-msg-1"}
    ses = MagicMock(name="ses")
    ses.send_email.return_value = {"MessageId": "email-msg-1"}
    sns = MagicMock(name="sns")
    sns.publish.return_value = {"MessageId": "push-msg-1"}
    sns.create_platform_endpoint.return_value = {"EndpointArn": f"{IOS_APP_ARN}/endpoint-1"}
    sns.subscribe.return_value = {"SubscriptionArn": f"{TOPIC_ARN}:sub-1"}
    return {"sqs": sqs, "ses": ses, "sns": sns}


@pytest.fixture
def fanout_engine(aws_clients):
    return NotificationFanoutEngine(
        queue=QueueAdapter(aws_clients["sqs"], QUEUE_URL),
        bulk_queue=BulkQueueAdapter(aws_clients["sqs"], QUEUE_URL),
        email=EmailAdapter(aws_clients["ses"], "no-reply@example.com"),
        push=PushAdapter(aws_clients["sns"], TOPIC_ARN),
        resolve_email=lambda user_id: f"user{user_id}@example.com",
    )


@pytest.fixture
def device_registry(aws_clients):
    return DeviceEndpointRegistry(
        aws_clients["sns"],
        topic_arn=TOPIC_ARN,
        platform_application_arns={"ios": IOS_APP_ARN, "android": ANDROID_APP_ARN},
    )


@pytest.fixture
def client(db, fanout_engine, device_registry):
    fastapi_app.dependency_overrides[get_db] = lambda: db
    fastapi_app.dependency_overrides[get_fanout_engine] = lambda: fanout_engine
    fastapi_app.dependency_overrides[get_device_registry] = lambda: device_registry
    try:
        yield TestClient(fastapi_app)
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers
