"""Tests for direct messages and conversation views."""

from datetime import datetime

import pytest

from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.modules.messages.models.message import Message
from app.modules.messages.services.conversation import (
    get_conversation,
    list_conversations,
    mark_conversation_as_read,
    mark_message_as_read,
)
from app.modules.messages.services.message import get_unread_message_count, send_message


def test_hello_scenario(db, make_user):
    one, two = make_user(), make_user()
    send_message(db, one.id, two.id, "hello")

    page = list_conversations(db, two.id)
    assert page.total_count == 1
    conversation = page.conversations[0]
    assert conversation.user_id == one.id
    assert conversation.unread_count == 1
    assert conversation.last_message.content == "hello"
    assert not conversation.last_message.is_sent

    thread = get_conversation(db, two.id, one.id)
    assert thread.messages[0].is_read
    assert thread.messages[0].read_at is not None

    assert list_conversations(db, two.id).conversations[0].unread_count == 0


def test_send_message_validation(db, make_user):
    one, two = make_user(), make_user()

    with pytest.raises(ValidationError):
        send_message(db, one.id, two.id, "   ")
    with pytest.raises(ValidationError):
        send_message(db, one.id, two.id, "x" * 2001)
    with pytest.raises(ValidationError):
        send_message(db, one.id, one.id, "note to self")
    with pytest.raises(NotFoundError):
        send_message(db, one.id, 999, "anyone there?")

    assert db.query(Message).count() == 0


def test_conversations_grouped_by_counterpart(db, make_user):
    me, bob, carol = make_user(), make_user(), make_user()
    send_message(db, bob.id, me.id, "from bob 1")
    send_message(db, me.id, carol.id, "to carol")
    send_message(db, bob.id, me.id, "from bob 2")
    send_message(db, me.id, bob.id, "reply to bob")

    page = list_conversations(db, me.id)

    assert page.total_count == 2
    # Most recent conversation first; equal timestamps fall back to message id
    assert [c.user_id for c in page.conversations] == [bob.id, carol.id]
    bob_conversation = page.conversations[0]
    assert bob_conversation.last_message.content == "reply to bob"
    assert bob_conversation.last_message.is_sent
    assert bob_conversation.unread_count == 2
    assert page.conversations[1].unread_count == 0


def test_conversation_pagination(db, make_user):
    me = make_user()
    others = [make_user() for _ in range(3)]
    for other in others:
        send_message(db, other.id, me.id, "hi")

    first = list_conversations(db, me.id, page=1, page_size=2)
    second = list_conversations(db, me.id, page=2, page_size=2)

    assert first.total_count == 3
    assert first.total_pages == 2
    assert len(first.conversations) == 2
    assert len(second.conversations) == 1

    with pytest.raises(ValidationError):
        list_conversations(db, me.id, page=0)


def test_viewing_marks_only_the_fetched_page(db, make_user):
    me, bob = make_user(), make_user()
    for i in range(5):
        send_message(db, bob.id, me.id, f"message {i}")

    thread = get_conversation(db, me.id, bob.id, page=1, page_size=2)

    assert [m.content for m in thread.messages] == ["message 4", "message 3"]
    assert all(m.is_read for m in thread.messages)
    assert get_unread_message_count(db, me.id) == 3


def test_viewing_does_not_mark_own_messages(db, make_user):
    me, bob = make_user(), make_user()
    send_message(db, me.id, bob.id, "sent by me")

    get_conversation(db, me.id, bob.id)

    assert get_unread_message_count(db, bob.id) == 1


def test_conversation_with_missing_user(db, make_user):
    me = make_user()
    with pytest.raises(NotFoundError):
        get_conversation(db, me.id, 4242)


def test_mark_as_read_is_idempotent(db, make_user):
    one, two = make_user(), make_user()
    message = send_message(db, one.id, two.id, "ping")

    first = mark_message_as_read(db, message.id, two.id)
    read_at = first.read_at
    second = mark_message_as_read(db, message.id, two.id)

    assert second.is_read
    assert second.read_at == read_at


def test_only_recipient_marks_as_read(db, make_user):
    one, two = make_user(), make_user()
    message = send_message(db, one.id, two.id, "ping")

    with pytest.raises(ForbiddenError):
        mark_message_as_read(db, message.id, one.id)
    with pytest.raises(NotFoundError):
        mark_message_as_read(db, 9999, two.id)


def test_mark_conversation_as_read(db, make_user):
    me, bob, carol = make_user(), make_user(), make_user()
    send_message(db, bob.id, me.id, "a")
    send_message(db, bob.id, me.id, "b")
    send_message(db, carol.id, me.id, "c")

    assert mark_conversation_as_read(db, me.id, bob.id) == 2
    assert mark_conversation_as_read(db, me.id, bob.id) == 0
    assert get_unread_message_count(db, me.id) == 1


def _set_created_at(db, message_id, created_at):
    db.query(Message).filter(Message.id == message_id).update(
        {Message.created_at: created_at}, synchronize_session=False
    )
    db.commit()


def test_conversations_ordered_by_time_not_id(db, make_user):
    me, bob, carol = make_user(), make_user(), make_user()
    older_id = send_message(db, bob.id, me.id, "sent first, stamped later").id
    newer_id = send_message(db, carol.id, me.id, "sent second, stamped earlier").id
    _set_created_at(db, older_id, datetime(2030, 1, 1, 12, 0))
    _set_created_at(db, newer_id, datetime(2030, 1, 1, 11, 0))

    page = list_conversations(db, me.id)

    assert [c.user_id for c in page.conversations] == [bob.id, carol.id]


def test_conversation_messages_ordered_by_time_not_id(db, make_user):
    me, bob = make_user(), make_user()
    older_id = send_message(db, bob.id, me.id, "stamped later").id
    newer_id = send_message(db, bob.id, me.id, "stamped earlier").id
    _set_created_at(db, older_id, datetime(2030, 1, 1, 12, 0))
    _set_created_at(db, newer_id, datetime(2030, 1, 1, 11, 0))

    thread = get_conversation(db, me.id, bob.id)

    assert [m.content for m in thread.messages] == ["stamped later", "stamped earlier"]
    assert list_conversations(db, me.id).conversations[0].last_message.content == "stamped later"


def test_mark_as_read_does_not_overwrite_a_concurrent_read(db, make_user):
    one, two = make_user(), make_user()
    message = send_message(db, one.id, two.id, "ping")
    assert not message.is_read

    # Another request marks the row read; this session's copy is still stale
    db.query(Message).filter(Message.id == message.id).update(
        {Message.is_read: True, Message.read_at: datetime(2020, 1, 1)},
        synchronize_session=False,
    )

    result = mark_message_as_read(db, message.id, two.id)

    assert result.is_read
    assert result.read_at.year == 2020
