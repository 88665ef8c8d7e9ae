"""Request/response models for the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from barkpush.models.push import (
    ApiVersion,
    EncryptionAlgorithm,
    PushRequest,
    PushResponse,
    RequestParameter,
)


class SendPushRequest(PushRequest):
    """Push request with optional per-call overrides of the configured defaults."""

    api_version: ApiVersion | None = Field(
        None,
        description="Gateway API generation (defaults to push.api_version)",
    )
    encrypt: bool | None = Field(
        None,
        description="Force encryption on or off (defaults to encryption.enabled)",
    )


class PushSendResponse(BaseModel):
    """Result of a dispatched push."""

    success: bool = Field(..., description="True only when the gateway returned code 200")
    id: str = Field(..., description="Push identifier, usable for recall")
    encrypted: bool
    response: PushResponse
    parameters: list[RequestParameter] = Field(..., description="Parameters for the history record")


class ParametersResponse(BaseModel):
    """Preview of the parameters a push would be recorded with."""

    id: str
    encrypted: bool
    parameters: list[RequestParameter]


class EncryptionKeyResponse(BaseModel):
    """Freshly generated key and IV."""

    algorithm: EncryptionAlgorithm
    key: str
    iv: str
