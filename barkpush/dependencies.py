from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from barkpush.config import get_config_manager, settings  # settings is a reloading proxy
from barkpush.services.bark_client import BarkClient
from barkpush.services.container import get_container
from barkpush.services.push_dispatcher import PushDispatcher

security = HTTPBearer()


async def verify_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> None:
    """Verify the bearer token matches the configured auth.token."""
    if credentials.credentials != settings.auth_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        )


async def get_bark_client() -> BarkClient:
    """Get the shared Bark gateway client."""
    return get_container().bark_client


async def get_push_dispatcher(
    bark_client: BarkClient = Depends(get_bark_client),
) -> PushDispatcher:
    """Build a dispatcher from the current settings (re-read on every request)."""
    return PushDispatcher.from_settings(bark_client, get_config_manager().get_settings())
