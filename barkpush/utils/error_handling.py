"""
Error handling utilities for barkpush.

Provides a logging decorator and a helper to render exceptions for API
and CLI output.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from barkpush.exceptions import BarkPushError, ProtocolError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def log_errors(operation_name: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to log errors with context before re-raising them.

    Library errors (BarkPushError) are logged at ERROR with their context;
    anything else is unexpected and logged with a traceback.

    Example:
        @log_errors("dispatch_push")
        async def dispatch(self, request: PushRequest) -> PushResult:
            ...
    """

    def _log(func: Callable[..., Any], e: Exception) -> None:
        extra = {
            "operation": operation_name,
            "error_type": type(e).__name__,
            "function": func.__name__,
        }
        if isinstance(e, BarkPushError):
            logger.error(f"Error in {operation_name}: {e}", extra={**extra, **e.context})
        else:
            logger.exception(f"Error in {operation_name}", extra=extra)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                _log(func, e)
                raise

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                _log(func, e)
                raise

        if inspect.iscoroutinefunction(func):
            return async_wrapper  # type: ignore[return-value]
        return sync_wrapper

    return decorator


def format_exception_for_response(e: Exception) -> dict[str, object]:
    """
    Format exception for API or CLI error output.

    Example:
        {"error": "ProtocolError", "message": "HTTP error! status: 500", "status_code": 500}
    """
    error_dict: dict[str, object] = {
        "error": type(e).__name__,
        "message": str(e),
    }

    if isinstance(e, ProtocolError):
        error_dict["status_code"] = e.status_code
    if isinstance(e, BarkPushError) and e.context:
        error_dict["context"] = e.context

    return error_dict
