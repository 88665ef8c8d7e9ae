"""Models for barkpush."""

from barkpush.models.push import (
    ApiVersion,
    Authorization,
    Device,
    EncryptionAlgorithm,
    EncryptionConfig,
    PingResult,
    PushLevel,
    PushRequest,
    PushResponse,
    RequestParameter,
)

__all__ = [
    "ApiVersion",
    "Authorization",
    "Device",
    "EncryptionAlgorithm",
    "EncryptionConfig",
    "PingResult",
    "PushLevel",
    "PushRequest",
    "PushResponse",
    "RequestParameter",
]
