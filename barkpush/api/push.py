"""Push dispatch API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from barkpush.dependencies import get_bark_client, get_push_dispatcher, verify_token
from barkpush.exceptions import (
    ConfigurationError,
    DecodeError,
    ProtocolError,
    TransportError,
)
from barkpush.models.api import (
    EncryptionKeyResponse,
    ParametersResponse,
    PushSendResponse,
    SendPushRequest,
)
from barkpush.models.push import EncryptionAlgorithm, PingResult
from barkpush.services.bark_client import BarkClient
from barkpush.services.crypto import generate_iv, generate_key
from barkpush.services.device_grouping import validate_api_url
from barkpush.services.push_dispatcher import PushDispatcher, is_encrypted
from barkpush.services.request_parameters import get_request_parameters
from barkpush.utils.error_handling import format_exception_for_response

logger = logging.getLogger(__name__)
router = APIRouter()


def _configure(request: SendPushRequest, dispatcher: PushDispatcher) -> PushDispatcher:
    try:
        return dispatcher.with_options(encrypt=request.encrypt, api_version=request.api_version)
    except ConfigurationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=format_exception_for_response(e),
        ) from e


@router.post("/push", response_model=PushSendResponse)
async def send_push(
    request: SendPushRequest,
    dispatcher: PushDispatcher = Depends(get_push_dispatcher),
    _: None = Depends(verify_token),
) -> PushSendResponse:
    """
    Send a push to one device (v1/v2) or a batch of devices (v2).

    A response with ``success: false`` means the gateway answered with a
    non-200 code, including partial failures of a multi-server batch.
    """
    if not request.message:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="message must not be empty",
        )

    dispatcher = _configure(request, dispatcher)

    try:
        result = await dispatcher.dispatch(request)
    except ConfigurationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=format_exception_for_response(e),
        ) from e
    except (TransportError, ProtocolError, DecodeError) as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=format_exception_for_response(e),
        ) from e

    return PushSendResponse(
        success=result.success,
        id=result.id,
        encrypted=result.encrypted,
        response=result.response,
        parameters=result.parameters,
    )


@router.post("/push/parameters", response_model=ParametersResponse)
async def preview_parameters(
    request: SendPushRequest,
    dispatcher: PushDispatcher = Depends(get_push_dispatcher),
    _: None = Depends(verify_token),
) -> ParametersResponse:
    """Show the parameters a push would be recorded with, without sending it."""
    dispatcher = _configure(request, dispatcher)
    prepared = dispatcher.prepare(request)
    encrypted = is_encrypted(dispatcher.encryption_config)

    return ParametersResponse(
        id=prepared.id or "",
        encrypted=encrypted,
        parameters=get_request_parameters(prepared, encrypted),
    )


@router.get("/ping", response_model=PingResult)
async def ping(
    api_url: str = Query(..., description="Device URL whose gateway should be pinged"),
    bark_client: BarkClient = Depends(get_bark_client),
    _: None = Depends(verify_token),
) -> PingResult:
    """Check that the gateway serving a device is reachable."""
    if not validate_api_url(api_url):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid device URL",
        )

    try:
        return await bark_client.ping(api_url)
    except (TransportError, ProtocolError, DecodeError) as e:
        logger.warning("Ping failed", extra={"error_type": type(e).__name__})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=format_exception_for_response(e),
        ) from e


@router.get("/encryption/key", response_model=EncryptionKeyResponse)
async def new_encryption_key(
    algorithm: EncryptionAlgorithm = EncryptionAlgorithm.AES256,
    _: None = Depends(verify_token),
) -> EncryptionKeyResponse:
    """Generate a key and IV to paste into the Bark app's encryption settings."""
    return EncryptionKeyResponse(
        algorithm=algorithm,
        key=generate_key(algorithm),
        iv=generate_iv(),
    )
