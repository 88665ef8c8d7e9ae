"""Request identifier generation."""

from __future__ import annotations

import secrets
import time

BASE62_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

_UUID_TEMPLATE = "xxxxxxxx-xxxx-4xxx-yxxx-xxxxxxxxxxxx"


def encode_base62(value: int) -> str:
    """Encode a non-negative integer in the 62-symbol alphabet."""
    if value < 0:
        msg = f"Cannot encode negative value: {value}"
        raise ValueError(msg)
    if value == 0:
        return BASE62_ALPHABET[0]

    digits = []
    while value:
        value, remainder = divmod(value, 62)
        digits.append(BASE62_ALPHABET[remainder])
    return "".join(reversed(digits))


def _random_case(char: str) -> str:
    if char.isalpha() and secrets.randbits(1):
        return char.upper()
    return char


def _random_uuid() -> str:
    chars = []
    for c in _UUID_TEMPLATE:
        if c == "x":
            chars.append(_random_case(format(secrets.randbelow(16), "x")))
        elif c == "y":
            # RFC 4122 variant: 10xx
            chars.append(_random_case(format(secrets.randbelow(4) | 0x8, "x")))
        else:
            chars.append(c)
    return "".join(chars)


def generate_id() -> str:
    """
    Generate a request identifier.

    The millisecond timestamp in base62 gives a sortable prefix; the
    UUID-shaped suffix has every hex letter's case picked at random.
    Uniqueness is not guaranteed here, the history store enforces it.

    Returns:
        Identifier such as ``1kLmN3xQ9e3fA1b2C-4d5E-4F6a-9B7c-D8e9F0a1B2c3``
    """
    timestamp_ms = time.time_ns() // 1_000_000
    return f"{encode_base62(timestamp_ms)}{_random_uuid()}"
