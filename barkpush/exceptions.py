"""
Errors raised by the push dispatch core.

Every error carries a ``context`` dict that ``log_errors`` merges into the
structured log record, so callers never need to format it into the message.
"""

from __future__ import annotations


class BarkPushError(Exception):
    """
    Root of all barkpush errors.

    Attributes:
        context: Structured fields for the log record (origin, operation, ...)
    """

    def __init__(self, message: str, context: dict[str, object] | None = None):
        super().__init__(message)
        self.context = context or {}


class ConfigurationError(BarkPushError):
    """
    The push cannot be attempted with the given settings.

    Always raised before any network I/O.

    Example:
        raise ConfigurationError(
            "Encryption key is required for encrypted push",
            context={"operation": "send_encrypted_push"}
        )
    """


class EncryptionError(ConfigurationError):
    """
    Payload encryption failed.

    Raised when the key or IV does not have a valid AES length.
    """


class TransportError(BarkPushError):
    """
    The request never produced an HTTP response.

    Wraps network, DNS and timeout failures; callers see one opaque failure.
    """


class ProtocolError(BarkPushError):
    """
    The gateway answered with a non-2xx HTTP status.

    Example:
        raise ProtocolError(
            "HTTP error! status: 500",
            status_code=500,
            context={"endpoint": "https://api.day.app/push"}
        )
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        context: dict[str, object] | None = None,
    ):
        super().__init__(message, context)
        self.status_code = status_code


class DecodeError(BarkPushError):
    """The gateway response body was not valid JSON."""
