import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from barkpush.api import health, push
from barkpush.config import settings
from barkpush.logging_config import configure_json_logging
from barkpush.middleware.request_id import RequestIDMiddleware
from barkpush.services.bark_client import BarkClient
from barkpush.services.container import init_container, reset_container
from barkpush.version import get_version

configure_json_logging(log_level=settings.log_level, use_json=settings.log_json)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup and shutdown."""
    bark_client = BarkClient(timeout_seconds=settings.push_timeout_seconds)
    init_container(bark_client=bark_client)

    logger.info(
        "barkpush server ready",
        extra={
            "api_version": settings.push_api_version,
            "encryption_enabled": settings.encryption_enabled,
        },
    )

    yield

    logger.info("barkpush server shutting down")
    reset_container()


app = FastAPI(
    title="barkpush",
    description="Push dispatch API for Bark-compatible gateways",
    version=get_version(),
    lifespan=lifespan,
)

app.add_middleware(RequestIDMiddleware)

if settings.cors_enabled and settings.cors_allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        max_age=3600,
    )
    logger.info(f"CORS configured for origins: {settings.cors_allowed_origins}")

app.include_router(health.router)
app.include_router(push.router, tags=["push"])
