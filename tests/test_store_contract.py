"""Behaviour every MessageStore implementation must share."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from alice_skill.db.memory_store import MemoryStore
from alice_skill.db.sql_store import SQLStore
from alice_skill.db.store import ConflictError, Message, NotFoundError, StoreError


@pytest.fixture
def users(store):
    store.register_user("u-alice", "alice")
    store.register_user("u-bob", "bob")
    return store


def test_bootstrap_twice_fails(store):
    with pytest.raises(StoreError):
        store.bootstrap()


def test_register_same_username_twice_conflicts(store):
    store.register_user("u-1", "alice")
    with pytest.raises(ConflictError):
        store.register_user("u-2", "alice")
    assert store.find_recipient("alice") == "u-1"


def test_register_same_id_twice_conflicts(store):
    store.register_user("u-1", "alice")
    with pytest.raises(ConflictError):
        store.register_user("u-1", "alicia")
    with pytest.raises(NotFoundError):
        store.find_recipient("alicia")


def test_conflict_is_a_store_error(store):
    store.register_user("u-1", "alice")
    with pytest.raises(StoreError):
        store.register_user("u-1", "alice")


def test_find_recipient(users):
    assert users.find_recipient("bob") == "u-bob"


def test_find_unknown_recipient(users):
    with pytest.raises(NotFoundError):
        users.find_recipient("carol")


def test_empty_inbox(users):
    assert users.list_messages("u-bob") == []
    assert users.list_messages("nobody") == []


def test_round_trip_keeps_insertion_order(users):
    users.save_messages(
        Message(sender="u-alice", recipient="u-bob", payload="first"),
        Message(sender="u-bob", recipient="u-alice", payload="not for bob"),
        Message(sender="u-alice", recipient="u-bob", payload="second"),
    )
    users.save_messages(Message(sender="u-bob", recipient="u-bob", payload="note to self"))

    inbox = users.list_messages("u-bob")

    assert [m.sender for m in inbox] == ["alice", "alice", "bob"]
    assert [m.id for m in inbox] == sorted(m.id for m in inbox)
    assert all(m.payload == "" for m in inbox)
    assert all(m.sent_at is not None and m.sent_at.tzinfo is not None for m in inbox)
    assert [users.get_message(m.id).payload for m in inbox] == ["first", "second", "note to self"]


def test_get_message(users):
    sent_at = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
    users.save_messages(Message(sender="u-alice", recipient="u-bob", payload="hello", sent_at=sent_at))
    (summary,) = users.list_messages("u-bob")

    msg = users.get_message(summary.id)

    assert msg.id == summary.id
    assert msg.sender == "alice"
    assert msg.recipient == "u-bob"
    assert msg.payload == "hello"
    assert msg.sent_at == sent_at


def test_get_unknown_message(users):
    with pytest.raises(NotFoundError):
        users.get_message(12345)


def test_batch_stamps_missing_time(users):
    before = datetime.now(timezone.utc) - timedelta(seconds=1)
    users.save_messages(Message(sender="u-alice", recipient="u-bob", payload="now"))
    (msg,) = users.list_messages("u-bob")
    assert msg.sent_at >= before


def test_singular_form_uses_argument_recipient_and_insertion_time(users):
    stale = datetime(2000, 1, 1, tzinfo=timezone.utc)
    users.save_message("u-bob", Message(sender="u-alice", recipient="u-alice", payload="hi", sent_at=stale))

    assert users.list_messages("u-alice") == []
    (msg,) = users.list_messages("u-bob")
    assert msg.sent_at > stale
    assert users.get_message(msg.id).payload == "hi"


def test_save_nothing_is_a_no_op(users):
    users.save_messages()
    assert users.list_messages("u-bob") == []


def test_messages_from_unknown_senders_are_hidden(users):
    users.save_messages(Message(sender="u-ghost", recipient="u-bob", payload="boo"))
    assert users.list_messages("u-bob") == []


@pytest.fixture(params=["sql", "memory"])
def fresh_store(request):
    """A store of each kind whose schema has not been created yet."""
    if request.param == "sql":
        return SQLStore(request.getfixturevalue("engine"))
    return MemoryStore()


def test_operations_before_bootstrap_fail(fresh_store):
    with pytest.raises(StoreError):
        fresh_store.register_user("u-1", "alice")
    with pytest.raises(StoreError):
        fresh_store.list_messages("u-1")
    with pytest.raises(StoreError):
        fresh_store.find_recipient("alice")
    with pytest.raises(StoreError):
        fresh_store.get_message(1)
    with pytest.raises(StoreError):
        fresh_store.save_messages(Message(sender="u-1", recipient="u-2", payload="hi"))


def test_bootstrap_unlocks_operations(fresh_store):
    fresh_store.bootstrap()
    fresh_store.register_user("u-1", "alice")
    assert fresh_store.list_messages("u-1") == []
