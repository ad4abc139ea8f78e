"""CSRF token generation."""

import random
import secrets
import string

from csrf_protector.logging_config import get_logger

DEFAULT_TOKEN_LENGTH = 32
MAX_TOKEN_LENGTH = 128
RANDOM_BYTES = 64

_FALLBACK_ALPHABET = string.ascii_lowercase + string.digits


def normalize_token_length(length) -> int:
    """Clamp a configured token length to a usable value.

    Zero, negative and non-integer values fall back to the default length.

    Raises:
        ValueError: If the length exceeds what the random source provides
    """
    try:
        length = int(length)
    except (TypeError, ValueError):
        return DEFAULT_TOKEN_LENGTH

    if length <= 0:
        return DEFAULT_TOKEN_LENGTH
    if length > MAX_TOKEN_LENGTH:
        raise ValueError(f"Token length {length} exceeds maximum of {MAX_TOKEN_LENGTH}")
    return length


def _weak_random_chars(count: int) -> str:
    """Lower-assurance fallback used only when the OS has no entropy source."""
    rng = random.Random()
    return "".join(rng.choice(_FALLBACK_ALPHABET) for _ in range(count))


def generate_token(length: int = DEFAULT_TOKEN_LENGTH) -> str:
    """Generate a CSRF token of exactly ``length`` characters.

    Draws 64 bytes from the OS CSPRNG and hex-encodes them. If the platform
    has no secure source, 128 pseudo-random alphanumeric characters are used
    instead; those tokens are predictable and a warning is logged.

    Args:
        length: Desired token length, clamped by ``normalize_token_length``

    Returns:
        The token string
    """
    length = normalize_token_length(length)

    try:
        token = secrets.token_bytes(RANDOM_BYTES).hex()
    except NotImplementedError:
        get_logger().warning("No secure random source available, using weak token generator")
        token = _weak_random_chars(RANDOM_BYTES * 2)

    return token[:length]
