"""
Request context for log correlation.

Holds the id of the HTTP request being served, or of the push being
dispatched from the CLI, so every log line of that unit of work carries it.
"""

from __future__ import annotations

import contextvars

from barkpush.services.identifiers import generate_id

request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id",
    default=None,
)


def get_request_id() -> str | None:
    return request_id_var.get()


def set_request_id(request_id: str | None) -> contextvars.Token[str | None]:
    """Set the current request id, returning a token for :func:`reset_request_id`."""
    return request_id_var.set(request_id)


def reset_request_id(token: contextvars.Token[str | None]) -> None:
    request_id_var.reset(token)


def generate_request_id() -> str:
    """New request id, in the same format as push ids."""
    return generate_id()
