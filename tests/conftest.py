import logging
import os
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

# Write the config file BEFORE anything imports barkpush.config,
# which loads it at import time
_tmp_dir = tempfile.TemporaryDirectory(prefix="pytest_config_")
_config_file = Path(_tmp_dir.name) / "config.yaml"
_config_file.write_text(
    """
environment: test

auth:
  token: test-token-123

push:
  api_version: v1
  timeout_seconds: 5

encryption:
  enabled: false

logging:
  level: INFO
  json: true
"""
)
os.environ["CONFIG_PATH"] = str(_config_file)


def _make_response(payload, status_code=200):
    """Fake httpx response whose json() returns ``payload``."""
    response = MagicMock()
    response.status_code = status_code
    response.json = lambda: payload
    return response


@pytest.fixture
def mock_http():
    """Patch httpx.AsyncClient; yields the client used inside ``async with``."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.get.return_value = _make_response(
            {"code": 200, "message": "success", "timestamp": 1700000000}
        )
        mock_client.post.return_value = _make_response(
            {"code": 200, "message": "success", "timestamp": 1700000000}
        )
        mock_client.__aenter__.return_value = mock_client
        mock_client.__aexit__.return_value = None
        mock_client_class.return_value = mock_client
        yield mock_client


@pytest.fixture
def restore_logging():
    """Put the root logger back the way it was after a test reconfigures it."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            root_logger.removeHandler(handler)
    root_logger.setLevel(level)


@pytest.fixture
def auth_headers():
    """Valid authorization headers."""
    return {"Authorization": "Bearer test-token-123"}
