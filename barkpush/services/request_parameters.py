"""Reconstruction of a push's parameters for history display."""

from __future__ import annotations

from typing import TYPE_CHECKING

from barkpush.models.push import RequestParameter
from barkpush.services.payload import FIELDS_BY_WIRE_NAME, stringify

if TYPE_CHECKING:
    from barkpush.models.push import PushRequest

REDACTED = "***"

# Shown only when set, after the fixed leading entries
_OPTIONAL_DISPLAY_FIELDS = (
    "title",
    "subtitle",
    "url",
    "icon",
    "group",
    "badge",
    "level",
    "volume",
    "call",
    "isArchive",
    "action",
    "image",
)


def get_request_parameters(request: PushRequest, is_encrypted: bool) -> list[RequestParameter]:
    """
    Rebuild the logical parameter list of a push.

    This is what the user sees in their history, not the literal bytes
    sent: ``autoCopy`` shows ``1`` and ``copy`` shows the message when they
    were not set. Encrypted pushes get redacted ``iv`` and ``ciphertext``
    entries in front of the same logical parameters.

    Args:
        request: Push request as dispatched
        is_encrypted: Whether the push went out encrypted

    Returns:
        Ordered list of key/value entries
    """
    parameters: list[RequestParameter] = []
    if is_encrypted:
        parameters.append(RequestParameter(key="iv", value=REDACTED))
        parameters.append(RequestParameter(key="ciphertext", value=REDACTED))

    parameters.extend(
        [
            RequestParameter(key="message", value=request.message),
            RequestParameter(key="autoCopy", value=request.auto_copy or "1"),
            RequestParameter(key="copy", value=request.copy_text or request.message),
            RequestParameter(key="id", value=request.id or ""),
            RequestParameter(key="sound", value=request.sound or ""),
        ]
    )

    for wire_name in _OPTIONAL_DISPLAY_FIELDS:
        value = getattr(request, FIELDS_BY_WIRE_NAME[wire_name].attr)
        if value is None or value == "":
            continue
        parameters.append(RequestParameter(key=wire_name, value=stringify(value)))

    device_keys = [device.device_key for device in request.devices if device.device_key]
    if device_keys:
        parameters.append(RequestParameter(key="device_keys", value=stringify(device_keys)))

    return parameters
