"""Transport strategies for the Bark push gateway (API v1 and v2)."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urlsplit

import httpx
from pydantic import ValidationError

from barkpush.exceptions import (
    BarkPushError,
    ConfigurationError,
    DecodeError,
    ProtocolError,
    TransportError,
)
from barkpush.models.push import PingResult, PushResponse
from barkpush.services.crypto import encrypt_aes_cbc, generate_iv
from barkpush.services.device_grouping import (
    format_api_url,
    get_origin,
    group_by_server,
    parse_api_url,
)
from barkpush.services.identifiers import generate_id
from barkpush.services.payload import stringify, to_wire_payload
from barkpush.utils.redaction import redact_device_url, redact_dict

if TYPE_CHECKING:
    from barkpush.models.push import Authorization, Device, EncryptionConfig, PushRequest

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"

BATCH_FAILURE_CODE = 400
TRANSPORT_FAILURE_CODE = -1

# Fields carried in the URL path of a plain v1 push, or hidden by v2 encryption
_PATH_FIELDS = ("body", "title")
_ENCRYPTED_V2_STRIPPED = ("body", "title", "subtitle")


def encode_uri_component(value: str) -> str:
    """Percent-encode a value the way browsers' encodeURIComponent does."""
    return quote(value, safe="-_.!~*'()")


def _to_json(data: dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def build_plain_url(request: PushRequest) -> str:
    """
    Build the GET URL of a plain v1 push.

    ``{api_url}[{title}/]{body}?autoCopy=..&copy=..&<remaining fields>``
    """
    payload = to_wire_payload(request)

    if request.title:
        path = f"{encode_uri_component(request.title)}/{encode_uri_component(request.message)}"
    else:
        path = encode_uri_component(request.message)

    query: dict[str, Any] = {
        "autoCopy": payload.pop("autoCopy", "1"),
        "copy": payload.pop("copy", request.message),
    }
    for key, value in payload.items():
        if key not in _PATH_FIELDS:
            query[key] = value

    query_string = "&".join(
        f"{encode_uri_component(key)}={encode_uri_component(stringify(value))}"
        for key, value in query.items()
    )
    return f"{request.api_url}{path}?{query_string}"


def build_headers(
    authorization: Authorization | None = None,
    content_type: str | None = None,
) -> dict[str, str]:
    headers = {"Cache-Control": "no-cache"}
    if content_type:
        headers["Content-Type"] = content_type
    if authorization and authorization.value:
        headers["Authorization"] = authorization.value
    return headers


def aggregate_responses(responses: list[PushResponse]) -> PushResponse:
    """
    Join per-server results of a v2 batch into one response.

    The batch succeeds only when every server answered 200. The message
    lists every server's outcome, joined by ``"; "``.
    """
    if not responses:
        msg = "Cannot aggregate an empty batch"
        raise ValueError(msg)
    if len(responses) == 1:
        return responses[0]

    all_ok = all(response.code == 200 for response in responses)
    return PushResponse(
        code=200 if all_ok else BATCH_FAILURE_CODE,
        message="; ".join(response.message for response in responses),
        timestamp=max(response.timestamp for response in responses),
    )


def _log_origin(url: str) -> str:
    """Origin of a URL for logs and error context, falling back to its host part."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if parts.scheme and parts.netloc:
        return f"{parts.scheme}://{parts.netloc}"
    return url.split("/", 1)[0]


def _parse_response(response: httpx.Response, endpoint: str) -> PushResponse:
    if not 200 <= response.status_code < 300:
        msg = f"HTTP error! status: {response.status_code}"
        raise ProtocolError(
            msg,
            status_code=response.status_code,
            context={"endpoint": endpoint},
        )

    try:
        return PushResponse.model_validate(response.json())
    except (ValueError, ValidationError) as e:
        msg = f"Invalid JSON response from push server: {e}"
        raise DecodeError(msg, context={"endpoint": endpoint}) from e


class BarkClient:
    """Client for sending pushes to Bark-compatible gateways."""

    def __init__(self, timeout_seconds: int = 10) -> None:
        """
        Initialize Bark client.

        Args:
            timeout_seconds: Timeout for each HTTP request in seconds
        """
        self.timeout = timeout_seconds

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> PushResponse:
        try:
            if method == "GET":
                response = await client.get(url, **kwargs)
            else:
                response = await client.post(url, **kwargs)
        except httpx.RequestError as e:
            msg = f"Network request failed: {e}"
            raise TransportError(
                msg,
                context={"origin": _log_origin(url), "error_type": type(e).__name__},
            ) from e

        logger.info(
            "Push request completed",
            extra={
                "method": method,
                "origin": _log_origin(url),
                "status_code": response.status_code,
            },
        )
        return _parse_response(response, _log_origin(url))

    async def send_plain_push(self, request: PushRequest) -> PushResponse:
        """
        Send an unencrypted API v1 push (GET with path and query).

        Args:
            request: Push request; ``api_url`` ends with the device key and a slash

        Returns:
            Gateway response

        Raises:
            TransportError: If the gateway is unreachable
            ProtocolError: If the gateway answers with a non-2xx status
            DecodeError: If the response is not valid JSON
        """
        if request.id is None:
            request = request.model_copy(update={"id": generate_id()})

        url = build_plain_url(request)
        logger.debug(
            "Sending plain push",
            extra={"push_id": request.id, "url": redact_device_url(url)},
        )

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._request(
                client,
                "GET",
                url,
                headers=build_headers(request.authorization),
            )

    async def send_encrypted_push(
        self,
        request: PushRequest,
        encryption_config: EncryptionConfig | None,
    ) -> PushResponse:
        """
        Send an encrypted API v1 push (form POST of iv, ciphertext, id).

        The id stays outside the ciphertext so the server can recall the
        push without decrypting it.

        Raises:
            ConfigurationError: If no encryption key is configured
            EncryptionError: If the key has an invalid length
            TransportError, ProtocolError, DecodeError: As for plain pushes
        """
        if encryption_config is None or not encryption_config.key:
            msg = "Encryption key is required for encrypted push"
            raise ConfigurationError(msg, context={"operation": "send_encrypted_push"})

        if request.id is None:
            request = request.model_copy(update={"id": generate_id()})

        iv = generate_iv()
        payload = to_wire_payload(request)
        ciphertext = encrypt_aes_cbc(_to_json(payload), encryption_config.key, iv)

        form = {"iv": iv, "ciphertext": ciphertext, "id": request.id}

        logger.debug(
            "Sending encrypted push",
            extra={"push_id": request.id, "origin": _log_origin(request.api_url)},
        )

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._request(
                client,
                "POST",
                request.api_url,
                headers=build_headers(request.authorization, FORM_CONTENT_TYPE),
                data=form,
            )

    def _build_v2_payload(
        self,
        request: PushRequest,
        encryption_config: EncryptionConfig | None,
        device_keys: list[str] | None = None,
    ) -> dict[str, Any]:
        payload = to_wire_payload(request)

        if encryption_config is not None and encryption_config.key:
            iv = generate_iv()
            ciphertext = encrypt_aes_cbc(_to_json(payload), encryption_config.key, iv)
            for field in _ENCRYPTED_V2_STRIPPED:
                payload.pop(field, None)
            payload["ciphertext"] = ciphertext
            payload["iv"] = iv

        if device_keys is not None:
            payload["device_keys"] = device_keys
        else:
            _, device_key = parse_api_url(request.api_url)
            if device_key:
                payload["device_key"] = device_key

        return payload

    async def _send_group(
        self,
        client: httpx.AsyncClient,
        server: str,
        devices: list[Device],
        request: PushRequest,
        payload: dict[str, Any],
    ) -> PushResponse:
        authorization = devices[0].authorization or request.authorization
        endpoint = f"{server}/push"

        try:
            return await self._request(
                client,
                "POST",
                endpoint,
                headers=build_headers(authorization, JSON_CONTENT_TYPE),
                json=payload,
            )
        except BarkPushError as e:
            logger.error(
                "Push to server failed",
                extra={
                    "push_id": request.id,
                    "server": server,
                    "device_count": len(devices),
                    "error_type": type(e).__name__,
                },
            )
            return PushResponse(
                code=TRANSPORT_FAILURE_CODE,
                message=f"{server}: {e}",
                timestamp=int(time.time()),
            )

    async def send_api_v2_push(
        self,
        request: PushRequest,
        encryption_config: EncryptionConfig | None = None,
    ) -> PushResponse:
        """
        Send an API v2 push (JSON POST to ``/push``).

        Without ``request.devices`` a single request goes to the origin of
        ``api_url``. With devices, one request per server is sent
        concurrently, each carrying that server's ``device_keys``, and the
        results are joined with :func:`aggregate_responses`.

        Raises:
            ConfigurationError: If devices are given but none has a server
            EncryptionError: If the key or IV has an invalid length, for batches too
            TransportError, ProtocolError, DecodeError: Single-target pushes only;
                batch failures are reported inside the aggregated response
        """
        if request.id is None:
            request = request.model_copy(update={"id": generate_id()})

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            if not request.devices:
                endpoint = f"{get_origin(request.api_url)}/push"
                payload = self._build_v2_payload(request, encryption_config)
                logger.debug(
                    "Sending API v2 push",
                    extra={"push_id": request.id, "payload": redact_dict(payload)},
                )
                return await self._request(
                    client,
                    "POST",
                    endpoint,
                    headers=build_headers(request.authorization, JSON_CONTENT_TYPE),
                    json=payload,
                )

            groups = group_by_server(request.devices)
            if not groups:
                msg = "None of the selected devices has a server address"
                raise ConfigurationError(
                    msg,
                    context={"operation": "send_api_v2_push", "device_count": len(request.devices)},
                )

            # Encryption errors surface here, before any group is sent
            payloads = {
                server: self._build_v2_payload(
                    request,
                    encryption_config,
                    [device.device_key for device in devices if device.device_key],
                )
                for server, devices in groups.items()
            }

            logger.debug(
                "Sending API v2 batch push",
                extra={"push_id": request.id, "server_count": len(groups)},
            )
            responses = await asyncio.gather(
                *(
                    self._send_group(client, server, devices, request, payloads[server])
                    for server, devices in groups.items()
                )
            )

        result = aggregate_responses(list(responses))
        logger.info(
            "API v2 batch push completed",
            extra={
                "push_id": request.id,
                "server_count": len(groups),
                "code": result.code,
            },
        )
        return result

    async def ping(self, api_url: str) -> PingResult:
        """
        Check that the gateway behind a device URL is reachable.

        ``api_url`` may omit the scheme, as users type it.

        Returns:
            Ping result with the server's code, message and round-trip latency

        Raises:
            ConfigurationError: If the URL has no host
            TransportError, ProtocolError, DecodeError: As for pushes
        """
        try:
            endpoint = f"{get_origin(format_api_url(api_url))}/ping"
        except ValueError as e:
            raise ConfigurationError(str(e), context={"operation": "ping"}) from e
        started = time.perf_counter()

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await self._request(client, "GET", endpoint)

        latency_ms = int((time.perf_counter() - started) * 1000)
        return PingResult(code=response.code, message=response.message, latency_ms=latency_ms)
