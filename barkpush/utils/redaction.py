"""Masking of device keys and encryption material before push data is logged."""

from __future__ import annotations

import re
from typing import Any

REDACTED = "[REDACTED]"

# Wire and model field names whose values are secrets
SECRET_FIELDS = frozenset(
    {
        "authorization",
        "auth_token",
        "pwd",
        "password",
        "key",
        "encryption_key",
        "iv",
        "ciphertext",
        "device_key",
        "devicekey",
    }
)

# Fields holding a device URL, whose last path segment is the device key
URL_FIELDS = frozenset({"api_url", "apiurl"})

_DEVICE_URL_PATTERN = re.compile(r"(https?://[^/\s]+/)([^/\s?]+)")


def redact_device_url(url: str) -> str:
    """Hide the device key in a Bark device URL."""
    return _DEVICE_URL_PATTERN.sub(rf"\1{REDACTED}", url)


def _redact_value(name: str, value: Any) -> Any:
    field = name.lower()
    if field in SECRET_FIELDS:
        return REDACTED
    if field == "device_keys" and isinstance(value, (list, tuple)):
        return [REDACTED] * len(value)
    if field in URL_FIELDS and isinstance(value, str):
        return redact_device_url(value)
    if isinstance(value, dict):
        return redact_dict(value)
    if isinstance(value, (list, tuple)):
        return [redact_dict(item) if isinstance(item, dict) else item for item in value]
    return value


def redact_dict(data: dict[str, Any]) -> dict[str, Any]:
    """
    Copy a push payload or model dump with secrets masked.

    Batches keep one placeholder per device key so the log still shows how
    many devices a request targeted.
    """
    return {name: _redact_value(name, value) for name, value in data.items()}
