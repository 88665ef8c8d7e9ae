"""Mapping of logical push requests onto the Bark wire field set."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from barkpush.models.push import DEFAULT_VOLUME

if TYPE_CHECKING:
    from barkpush.models.push import PushRequest


@dataclass(frozen=True)
class FieldSpec:
    """One message field: request attribute, wire name and omitted default."""

    attr: str
    wire_name: str
    omit_value: object | None = None

    def is_omitted(self, value: object) -> bool:
        if value is None:
            return True
        if self.omit_value is None:
            return False
        return str(value) == str(self.omit_value)


# Wire order. Transport metadata (api_url, authorization, devices) is absent on purpose.
MESSAGE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("message", "body"),
    FieldSpec("title", "title"),
    FieldSpec("subtitle", "subtitle"),
    FieldSpec("sound", "sound"),
    FieldSpec("url", "url"),
    FieldSpec("icon", "icon"),
    FieldSpec("group", "group"),
    FieldSpec("badge", "badge"),
    FieldSpec("level", "level"),
    FieldSpec("volume", "volume", omit_value=DEFAULT_VOLUME),
    FieldSpec("call", "call"),
    FieldSpec("auto_copy", "autoCopy"),
    FieldSpec("copy_text", "copy"),
    FieldSpec("is_archive", "isArchive"),
    FieldSpec("action", "action"),
    FieldSpec("image", "image"),
    FieldSpec("id", "id"),
)

FIELDS_BY_WIRE_NAME = {spec.wire_name: spec for spec in MESSAGE_FIELDS}


def _wire_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def to_wire_payload(request: PushRequest) -> dict[str, Any]:
    """
    Build the wire-level message payload for a push request.

    Absent fields are dropped, and ``volume`` is dropped when it equals the
    server default of 5.

    Args:
        request: Logical push request

    Returns:
        Dict of wire field name to value, in wire order
    """
    payload: dict[str, Any] = {}
    for spec in MESSAGE_FIELDS:
        value = getattr(request, spec.attr)
        if spec.is_omitted(value):
            continue
        payload[spec.wire_name] = _wire_value(value)
    return payload


def stringify(value: Any) -> str:
    """Render a wire value for a query string or a parameter listing."""
    if isinstance(value, (list, tuple)):
        return ",".join(str(_wire_value(item)) for item in value)
    return str(_wire_value(value))
