"""
Error taxonomy - Closed set of failures surfaced to callers of the client.
"""

from __future__ import annotations
from typing import Optional


class GotoClientError(Exception):
    """Base class for every error raised by the client."""

    default_code = "client_error"

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code or self.default_code

    def __str__(self) -> str:
        if self.status is not None:
            return f"[{self.status} {self.code}] {self.message}"
        return f"[{self.code}] {self.message}"


class ValidationError(GotoClientError):
    """Malformed input, detected locally or reported by the server (400)."""
    default_code = "validation_error"


class AuthError(GotoClientError):
    """Missing or invalid credentials, or insufficient permission (401/403)."""
    default_code = "auth_error"


class NotFoundError(GotoClientError):
    """Requested resource does not exist (404)."""
    default_code = "not_found"


class ServerError(GotoClientError):
    """Server-side failure (5xx). Retryable."""
    default_code = "server_error"


class RateLimitError(ServerError):
    """Request throttled or timed out upstream (429/408).

    These are 4xx statuses, but the same request can succeed later, so the
    class sits under ServerError and the retry policy backs off on it like
    any 5xx.
    """
    default_code = "rate_limited"


class TransportError(GotoClientError):
    """Connection-level failure: DNS, refused connection, timeout. Retryable."""
    default_code = "transport_error"


class CancelledError(GotoClientError):
    """Caller aborted the operation."""
    default_code = "cancelled"


class ConfigError(GotoClientError):
    """Client was constructed without required configuration."""
    default_code = "config_error"


RETRYABLE_ERRORS = (ServerError, TransportError)
