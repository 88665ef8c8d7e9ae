"""Logging setup shared by the API server and the CLI."""

from __future__ import annotations

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

JSON_FIELDS = "%(levelname)s %(name)s %(message)s %(request_id)s"
TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(request_id)s] %(message)s"

NO_REQUEST_ID = "no-request-id"

# Chatty third-party loggers capped at WARNING
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


class RequestIDFilter(logging.Filter):
    """Stamp each record with the id of the request or push being handled."""

    def filter(self, record: logging.LogRecord) -> bool:
        from barkpush.utils.request_context import get_request_id

        record.request_id = get_request_id() or NO_REQUEST_ID
        return True


class HealthCheckFilter(logging.Filter):
    """Drop uvicorn access lines for successful ``GET /health`` probes.

    Failed probes still reach the log.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        line = record.getMessage()
        return "GET /health " not in line or '" 200' not in line


def _build_formatter(use_json: bool) -> logging.Formatter:
    if use_json:
        return JsonFormatter(
            JSON_FIELDS,
            rename_fields={"levelname": "level"},
            timestamp=True,
        )
    return logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def configure_json_logging(
    log_level: str = "INFO",
    use_json: bool = True,
) -> None:
    """Route all logging to stdout, as JSON lines or plain text.

    Replaces any handlers already on the root logger, so calling it again
    (for example after a config reload) does not duplicate output.

    Args:
        log_level: Level name from ``logging.level`` in config.yaml
        use_json: JSON lines for the server, text for interactive CLI use
    """
    level = getattr(logging, log_level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(RequestIDFilter())
    handler.setFormatter(_build_formatter(use_json))

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("uvicorn.access").addFilter(HealthCheckFilter())
