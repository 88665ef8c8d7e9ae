"""Device grouping and API URL helpers."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from barkpush.models.push import Device

if TYPE_CHECKING:
    from collections.abc import Iterable

    from barkpush.models.push import Authorization

logger = logging.getLogger(__name__)


def format_api_url(url: str) -> str:
    """
    Normalize a user-entered device URL.

    Adds ``https://`` when no scheme is given and guarantees a trailing slash,
    so ``api.day.app/KEY`` becomes ``https://api.day.app/KEY/``.
    """
    formatted = url.strip()
    if not re.match(r"^https?://", formatted, re.IGNORECASE):
        formatted = f"https://{formatted}"
    if not formatted.endswith("/"):
        formatted += "/"
    return formatted


def validate_api_url(url: str) -> bool:
    """Check that a device URL has an http(s) scheme, a host and a device path."""
    scheme = re.match(r"^([A-Za-z][A-Za-z0-9+.-]*)://", url.strip())
    if scheme and scheme.group(1).lower() not in ("http", "https"):
        return False

    try:
        parts = urlsplit(format_api_url(url))
    except ValueError:
        return False

    if parts.scheme not in ("http", "https"):
        return False
    if not parts.hostname:
        return False
    return parts.path not in ("", "/")


def get_origin(url: str) -> str:
    """Return ``scheme://host[:port]`` of a URL."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        msg = f"URL has no origin: {url}"
        raise ValueError(msg)
    return f"{parts.scheme}://{parts.netloc}"


def parse_api_url(url: str) -> tuple[str | None, str | None]:
    """
    Split a device URL into server address and device key.

    The last path segment is the device key; the server is everything
    before it, so self-hosted gateways under a sub-path keep that path.

    Returns:
        ``(server, device_key)``, both None when the URL has no path
    """
    formatted = format_api_url(url)
    segments = [segment for segment in urlsplit(formatted).path.split("/") if segment]
    if not segments:
        return None, None

    device_key = segments[-1]
    server = formatted[: -len(device_key) - 1].rstrip("/")
    return server, device_key


def device_from_api_url(
    api_url: str,
    authorization: Authorization | None = None,
    alias: str | None = None,
) -> Device:
    """Build a Device record with server and device key derived from its URL."""
    formatted = format_api_url(api_url)
    server, device_key = parse_api_url(formatted)
    return Device(
        alias=alias,
        api_url=formatted,
        server=server,
        device_key=device_key,
        authorization=authorization,
    )


def group_by_server(devices: Iterable[Device]) -> dict[str, list[Device]]:
    """
    Partition devices by their declared server address.

    Servers are compared as exact strings. Devices without a server are
    skipped. Input order is kept both across and within groups.

    Args:
        devices: Devices to group

    Returns:
        Mapping of server address to its devices
    """
    groups: dict[str, list[Device]] = {}
    for device in devices:
        if not device.server:
            logger.warning(
                "Skipping device without server address",
                extra={"device_id": device.id, "alias": device.alias},
            )
            continue
        groups.setdefault(device.server, []).append(device)
    return groups
