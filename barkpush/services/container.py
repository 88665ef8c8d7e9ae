"""
Service dependency container.

Holds the long-lived services created in the application lifespan so API
routes receive them through FastAPI's Depends().
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from barkpush.services.bark_client import BarkClient


class ServiceContainer:
    """Container for application services."""

    def __init__(self, bark_client: BarkClient) -> None:
        self.bark_client = bark_client


_container: ServiceContainer | None = None


def init_container(bark_client: BarkClient) -> ServiceContainer:
    """Create the global service container (called from the app lifespan)."""
    global _container
    _container = ServiceContainer(bark_client=bark_client)
    return _container


def reset_container() -> None:
    global _container
    _container = None


def get_container() -> ServiceContainer:
    """Get service container.

    Raises:
        RuntimeError: If container not initialized (lifespan not running)
    """
    if _container is None:
        msg = "Service container is empty; is the app running under its lifespan?"
        raise RuntimeError(msg)
    return _container
