"""Tests for the session token queue."""

import pytest

from csrf_protector.exceptions import CSRFProtectorError
from csrf_protector.store import SessionTokenStore

KEY = "csrfp_token"


def make_store(tokens=None):
    session = {}
    if tokens is not None:
        session[KEY] = list(tokens)
    return SessionTokenStore(session, KEY), session


def test_append_creates_queue():
    store, session = make_store()
    assert not store.has_queue()

    store.append("a")
    store.append("b")

    assert session[KEY] == ["a", "b"]


def test_consume_removes_match_and_older_tokens():
    """Test that matching a token discards it and every older token."""
    store, session = make_store(["a", "b", "c"])

    assert store.consume_if_present("b") is True
    assert session[KEY] == ["c"]


def test_consume_newest_empties_queue():
    store, session = make_store(["a", "b", "c"])

    assert store.consume_if_present("c") is True
    assert session[KEY] == []


def test_consume_unknown_token_leaves_queue_unchanged():
    store, session = make_store(["a", "b", "c"])

    assert store.consume_if_present("x") is False
    assert session[KEY] == ["a", "b", "c"]


def test_token_cannot_be_consumed_twice():
    store, _ = make_store(["a", "b"])

    assert store.consume_if_present("a") is True
    assert store.consume_if_present("a") is False


def test_consume_without_queue():
    store, _ = make_store()
    assert store.consume_if_present("a") is False


def test_consume_non_ascii_token():
    """Test that attacker-supplied non-ASCII input is rejected, not raised on."""
    store, session = make_store(["a"])

    assert store.consume_if_present("ä") is False
    assert session[KEY] == ["a"]


def test_malformed_slot_fails_and_resets_on_append():
    """Test that a non-list session value is treated as no queue."""
    store, session = make_store()
    session[KEY] = "not-a-list"

    assert not store.has_queue()
    assert store.consume_if_present("not-a-list") is False

    store.append("fresh")
    assert session[KEY] == ["fresh"]


def test_contains_does_not_consume():
    store, session = make_store(["a", "b"])

    assert store.contains("a")
    assert not store.contains(None)
    assert session[KEY] == ["a", "b"]


def test_clear():
    store, session = make_store(["a", "b"])
    store.clear()
    assert session[KEY] == []


def test_append_without_session():
    store = SessionTokenStore(None, KEY)
    with pytest.raises(CSRFProtectorError):
        store.append("a")


def test_append_drops_oldest_past_maximum():
    """Test that the queue never grows beyond its configured size."""
    session = {}
    store = SessionTokenStore(session, KEY, max_tokens=3)

    for token in ["a", "b", "c", "d", "e"]:
        store.append(token)

    assert session[KEY] == ["c", "d", "e"]
    assert store.consume_if_present("a") is False
    assert store.consume_if_present("d") is True
