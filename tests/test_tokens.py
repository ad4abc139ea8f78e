"""Tests for CSRF token generation."""

import string

import pytest

from csrf_protector import tokens
from csrf_protector.tokens import DEFAULT_TOKEN_LENGTH, generate_token, normalize_token_length


def test_tokens_are_unique():
    """Test that a large batch of tokens has no duplicates."""
    generated = {generate_token(32) for _ in range(1000)}
    assert len(generated) == 1000


@pytest.mark.parametrize("length", [1, 16, 32, 64, 100, 128])
def test_token_has_requested_length(length):
    assert len(generate_token(length)) == length


def test_token_is_hex():
    token = generate_token(128)
    assert set(token) <= set(string.hexdigits.lower())


@pytest.mark.parametrize("length", [0, -1, -50, None, "abc"])
def test_invalid_length_falls_back_to_default(length):
    """Test that zero, negative and non-integer lengths use the default."""
    assert len(generate_token(length)) == DEFAULT_TOKEN_LENGTH


def test_length_above_maximum_rejected():
    with pytest.raises(ValueError):
        normalize_token_length(129)


def test_weak_fallback_when_no_secure_source(monkeypatch):
    """Test degraded generation when the OS has no entropy source."""

    def no_entropy(count):
        raise NotImplementedError

    monkeypatch.setattr(tokens.secrets, "token_bytes", no_entropy)

    token = generate_token(40)
    assert len(token) == 40
    assert set(token) <= set(string.ascii_lowercase + string.digits)
