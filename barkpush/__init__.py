"""Push dispatch client for Bark-compatible notification gateways."""

from barkpush.models.push import (
    Authorization,
    Device,
    EncryptionConfig,
    PushRequest,
    PushResponse,
)
from barkpush.services.bark_client import BarkClient
from barkpush.services.push_dispatcher import PushDispatcher, PushResult

__all__ = [
    "Authorization",
    "BarkClient",
    "Device",
    "EncryptionConfig",
    "PushDispatcher",
    "PushRequest",
    "PushResponse",
    "PushResult",
]
