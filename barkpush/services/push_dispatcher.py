"""Push dispatcher: picks the transport for each push."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from barkpush.exceptions import ConfigurationError
from barkpush.models.push import EncryptionConfig
from barkpush.services.identifiers import generate_id
from barkpush.services.request_parameters import get_request_parameters
from barkpush.utils.error_handling import log_errors

if TYPE_CHECKING:
    from barkpush.config import Settings
    from barkpush.models.push import ApiVersion, PushRequest, PushResponse, RequestParameter
    from barkpush.services.bark_client import BarkClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushResult:
    """Outcome of a dispatch, as handed to the history store."""

    id: str
    response: PushResponse
    parameters: list[RequestParameter]
    encrypted: bool

    @property
    def success(self) -> bool:
        return self.response.code == 200


def is_encrypted(encryption_config: EncryptionConfig | None) -> bool:
    return encryption_config is not None and bool(encryption_config.key)


class PushDispatcher:
    """Routes push requests to the v1 plain, v1 encrypted or v2 transport."""

    def __init__(
        self,
        client: BarkClient,
        encryption_config: EncryptionConfig | None = None,
        api_version: ApiVersion = "v1",
        default_sound: str | None = None,
    ) -> None:
        self.client = client
        self.encryption_config = encryption_config
        self.api_version = api_version
        self.default_sound = default_sound

    @classmethod
    def from_settings(cls, client: BarkClient, settings: Settings) -> PushDispatcher:
        """Create a dispatcher using the encryption and API defaults from settings."""
        encryption_config = None
        if settings.encryption_enabled:
            encryption_config = EncryptionConfig(
                algorithm=settings.encryption_algorithm,
                mode=settings.encryption_mode,
                key=settings.encryption_key,
            )
        return cls(
            client=client,
            encryption_config=encryption_config,
            api_version=settings.push_api_version,
            default_sound=settings.push_sound,
        )

    def with_options(
        self,
        *,
        encrypt: bool | None = None,
        api_version: ApiVersion | None = None,
    ) -> PushDispatcher:
        """
        Copy of this dispatcher with per-call overrides.

        Args:
            encrypt: False disables encryption, True requires a configured key,
                None keeps the configured behavior
            api_version: API generation to use instead of the configured one

        Raises:
            ConfigurationError: If encryption is requested but no key is configured
        """
        encryption_config = self.encryption_config
        if encrypt is False:
            encryption_config = None
        elif encrypt and not is_encrypted(encryption_config):
            msg = "Encryption requested but no encryption key is configured"
            raise ConfigurationError(msg, context={"operation": "with_options"})

        return PushDispatcher(
            client=self.client,
            encryption_config=encryption_config,
            api_version=api_version or self.api_version,
            default_sound=self.default_sound,
        )

    def prepare(self, request: PushRequest) -> PushRequest:
        """Fill in the id and default sound so transport and history agree."""
        updates: dict[str, object] = {}
        if request.id is None:
            updates["id"] = generate_id()
        if request.sound is None and self.default_sound:
            updates["sound"] = self.default_sound
        return request.model_copy(update=updates) if updates else request

    async def send_push(
        self,
        request: PushRequest,
        encryption_config: EncryptionConfig | None = None,
        api_version: ApiVersion = "v1",
    ) -> PushResponse:
        """
        Send a push using the transport selected by configuration.

        1. API v2 when requested (it handles encryption itself)
        2. Encrypted v1 when an encryption key is configured
        3. Plain v1 otherwise

        Args:
            request: Push request
            encryption_config: Optional encryption settings
            api_version: Gateway API generation

        Returns:
            Gateway response; only code 200 means success
        """
        if api_version == "v2":
            transport = "v2"
            call = self.client.send_api_v2_push(request, encryption_config)
        elif is_encrypted(encryption_config):
            transport = "v1_encrypted"
            call = self.client.send_encrypted_push(request, encryption_config)
        else:
            transport = "v1_plain"
            call = self.client.send_plain_push(request)

        logger.debug("Dispatching push", extra={"push_id": request.id, "transport": transport})
        return await call

    @log_errors("dispatch_push")
    async def dispatch(
        self,
        request: PushRequest,
        encryption_config: EncryptionConfig | None = None,
        api_version: ApiVersion | None = None,
    ) -> PushResult:
        """
        Send a push and reconstruct its parameter list for the history record.

        Falls back to the dispatcher's configured encryption and API version
        when they are not given.
        """
        if encryption_config is None:
            encryption_config = self.encryption_config
        if api_version is None:
            api_version = self.api_version

        request = self.prepare(request)
        response = await self.send_push(request, encryption_config, api_version)
        encrypted = is_encrypted(encryption_config)

        logger.info(
            "Push dispatched",
            extra={
                "push_id": request.id,
                "api_version": api_version,
                "encrypted": encrypted,
                "code": response.code,
            },
        )

        return PushResult(
            id=request.id or "",
            response=response,
            parameters=get_request_parameters(request, encrypted),
            encrypted=encrypted,
        )
