"""Push request/response models for the Bark gateway protocol."""

from __future__ import annotations

import base64
import re
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ApiVersion = Literal["v1", "v2"]

DEFAULT_VOLUME = 5
MAX_VOLUME = 10

_HTTP_URL = re.compile(r"^https?://[^/\s]+", re.IGNORECASE)


def _validate_http_url(value: str, field: str) -> str:
    """Require an absolute http(s) URL with a host."""
    if not _HTTP_URL.match(value):
        msg = f"{field} must start with http:// or https:// and name a host: {value!r}"
        raise ValueError(msg)
    return value


def _validate_volume(value: int | str | None) -> int | str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        msg = "volume must be an integer from 0 to 10"
        raise ValueError(msg)
    if isinstance(value, str):
        if not value.strip().isdigit():
            msg = f"volume must be an integer from 0 to 10, got {value!r}"
            raise ValueError(msg)
        value = value.strip()
        number = int(value)
    else:
        number = value
    if not 0 <= number <= MAX_VOLUME:
        msg = f"volume must be between 0 and {MAX_VOLUME}, got {number}"
        raise ValueError(msg)
    return value


class EncryptionAlgorithm(str, Enum):
    """AES key sizes supported by Bark clients."""

    AES128 = "AES128"
    AES192 = "AES192"
    AES256 = "AES256"


class PushLevel(str, Enum):
    """Notification interruption level."""

    CRITICAL = "critical"
    ACTIVE = "active"
    TIME_SENSITIVE = "timeSensitive"
    PASSIVE = "passive"


class Authorization(BaseModel):
    """Basic-auth credential attached to a device."""

    type: Literal["basic"] = "basic"
    user: str
    pwd: str
    value: str = Field(..., description="Pre-encoded Authorization header value")

    @classmethod
    def basic(cls, user: str, pwd: str) -> Authorization:
        token = base64.b64encode(f"{user}:{pwd}".encode()).decode("ascii")
        return cls(user=user, pwd=pwd, value=f"Basic {token}")


class Device(BaseModel):
    """Registered target device (owned by the device-management layer)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str | None = None
    alias: str | None = None
    api_url: str = Field(..., alias="apiURL")
    server: str | None = None
    device_key: str | None = Field(None, alias="deviceKey")
    authorization: Authorization | None = None

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        return _validate_http_url(v, "api_url")

    @field_validator("server")
    @classmethod
    def validate_server(cls, v: str | None) -> str | None:
        """Empty means no server; the device is then left out of v2 batches."""
        if not v:
            return v
        return _validate_http_url(v, "server")


class EncryptionConfig(BaseModel):
    """
    Client-side encryption settings.

    ``mode`` is a label only: every transport encrypts with AES-CBC, which is
    what Bark servers decrypt. ``GCM`` is accepted because older settings
    files carry it.
    """

    algorithm: EncryptionAlgorithm = EncryptionAlgorithm.AES256
    mode: Literal["CBC", "GCM"] = "CBC"
    key: str | None = None


class PushRequest(BaseModel):
    """Logical push request supplied by the caller."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="Notification body")
    title: str | None = None
    subtitle: str | None = None
    sound: str | None = None
    url: str | None = None
    icon: str | None = None
    group: str | None = None
    badge: int | str | None = None
    level: PushLevel | None = None
    volume: int | str | None = Field(None, description="Critical alert volume, 0-10")
    call: str | None = None
    auto_copy: str | None = Field(None, alias="autoCopy")
    copy_text: str | None = Field(None, alias="copy")
    is_archive: str | None = Field(None, alias="isArchive")
    action: str | None = None
    image: str | None = None

    id: str | None = Field(None, alias="uuid", description="Correlation identifier")

    # Transport metadata, never part of the message payload
    api_url: str = Field(..., alias="apiURL")
    authorization: Authorization | None = None
    devices: list[Device] = Field(default_factory=list)

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        return _validate_http_url(v, "api_url")

    @field_validator("volume")
    @classmethod
    def validate_volume(cls, v: int | str | None) -> int | str | None:
        """Critical alert volume is 0-10; numeric strings are accepted."""
        return _validate_volume(v)


class PushResponse(BaseModel):
    """Normalized gateway response. Only code 200 means success."""

    model_config = ConfigDict(extra="ignore")

    code: int
    message: str = ""
    timestamp: int = 0

    @property
    def ok(self) -> bool:
        return self.code == 200


class RequestParameter(BaseModel):
    """Single key/value entry of a reconstructed request."""

    key: str
    value: str


class PingResult(BaseModel):
    """Result of a gateway ping."""

    code: int
    message: str
    latency_ms: int
