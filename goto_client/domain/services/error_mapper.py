"""
Error mapper - Classifies non-2xx HTTP responses into the client error taxonomy.
"""

from __future__ import annotations
import json
from http import HTTPStatus
from typing import Any, Optional, Tuple, Type, Union

from ..models.errors import (
    AuthError,
    GotoClientError,
    NotFoundError,
    RateLimitError,
    ServerError,
    ValidationError,
)


def _error_class(status: int) -> Type[GotoClientError]:
    if status in (401, 403):
        return AuthError
    if status == 404:
        return NotFoundError
    if status in (408, 429):
        return RateLimitError
    if status >= 500:
        return ServerError
    return ValidationError


def _status_line(status: int, reason: Optional[str]) -> str:
    if not reason:
        try:
            reason = HTTPStatus(status).phrase
        except ValueError:
            reason = "Unknown Status"
    return f"HTTP {status} {reason}"


def _parse_error_body(body: Union[bytes, str, None]) -> Tuple[Optional[str], Optional[str]]:
    """Extract (code, message) from a JSON error body, if it has one."""
    if not body:
        return None, None
    try:
        payload: Any = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None, None
    if not isinstance(payload, dict) or "error" not in payload:
        return None, None
    error = payload["error"]
    if isinstance(error, str):
        return None, error
    if isinstance(error, dict):
        code = error.get("code")
        message = error.get("message")
        return (str(code) if code is not None else None,
                str(message) if message is not None else None)
    return None, None


def map_http_error(
    status: int,
    body: Union[bytes, str, None] = None,
    reason: Optional[str] = None
) -> GotoClientError:
    """Build the classified error for a non-2xx response.

    ``{"error": {"status", "code", "message"}}`` passes code and message
    through, ``{"error": "..."}`` keeps the message with the class's generic
    code, anything else gets a message synthesized from the status line.
    """
    error_cls = _error_class(status)
    code, message = _parse_error_body(body)
    if not message:
        message = _status_line(status, reason)
    return error_cls(message, status=status, code=code)
