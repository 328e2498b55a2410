"""
Goto API client - Entry point wiring credentials, transport, retry and resource clients.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from .application.catalog_service import CatalogService
from .application.chat_service import ChatService
from .application.discovery_service import DiscoveryService
from .domain.interfaces.transport import CancellationSignal, Transport
from .domain.models.auth import AuthContext
from .domain.models.errors import ConfigError, ServerError, TransportError
from .domain.services.error_mapper import map_http_error
from .infrastructure.config.settings import AppSettings
from .infrastructure.http.retry import RetryConfig, RetryPolicy
from .infrastructure.http.transport import RequestsTransport
from .utils import mask_secret

HEALTH_PATH = "/health"
API_INFO_PATH = "/api/"


def _get_public(
    transport: Transport,
    retry_policy: RetryPolicy,
    path: str,
    timeout: Optional[float],
    cancel: Optional[CancellationSignal]
) -> Any:
    def _attempt() -> Any:
        response = transport.send("GET", path, timeout=timeout, cancel=cancel)
        if not response.ok:
            raise map_http_error(response.status, response.body, response.reason)
        return response.json()
    return retry_policy.execute(_attempt, cancel=cancel)


def check_health(
    transport: Transport,
    retry_policy: Optional[RetryPolicy] = None,
    timeout: Optional[float] = None,
    cancel: Optional[CancellationSignal] = None
) -> Dict[str, Any]:
    """Call ``GET /health``. Needs no credentials."""
    data = _get_public(transport, retry_policy or RetryPolicy(), HEALTH_PATH, timeout, cancel)
    if not isinstance(data, dict) or "status" not in data:
        raise ServerError(f"Unexpected health payload: {data!r}", code="invalid_response")
    return data


class GotoClient:
    """Typed client for the products catalog, discovery and chat API.

    One instance holds one AuthContext for its lifetime; it is safe to
    share across threads since nothing on it is mutated after construction.
    """

    def __init__(
        self,
        auth: AuthContext,
        base_url: Optional[str] = None,
        transport: Optional[Transport] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = 30.0,
        stream_timeout: float = 120.0,
        connect_timeout: float = 5.0,
        logger: Optional[logging.Logger] = None
    ):
        if transport is None and not base_url:
            raise ConfigError("Either base_url or transport is required")
        self._logger = logger or logging.getLogger(__name__)
        self._auth = auth
        self._transport = transport or RequestsTransport(
            base_url,
            connect_timeout=connect_timeout,
            default_timeout=timeout,
        )
        self._retry = retry_policy or RetryPolicy(logger=self._logger)
        self._timeout = timeout

        self.catalog = CatalogService(auth, self._transport, retry_policy=self._retry, timeout=timeout)
        self.discovery = DiscoveryService(auth, self._transport, retry_policy=self._retry, timeout=timeout)
        self.chat = ChatService(
            auth,
            self._transport,
            retry_policy=self._retry,
            timeout=timeout,
            stream_timeout=stream_timeout,
        )
        self._logger.info(
            f"Goto client initialized - Tenant: {auth.tenant_id}, Key: {mask_secret(auth.api_key)}, "
            f"Base: {base_url or 'custom transport'}"
        )

    @classmethod
    def from_settings(cls, settings: AppSettings, transport: Optional[Transport] = None) -> GotoClient:
        """Build a client from loaded settings. Missing credentials raise ConfigError."""
        missing = settings.validate_required_settings()
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")
        retry = RetryPolicy(RetryConfig(
            max_attempts=settings.retry.max_attempts,
            base_delay=settings.retry.retry_base_delay,
            max_delay=settings.retry.retry_max_delay,
            jitter=settings.retry.retry_jitter,
        ))
        return cls(
            AuthContext(api_key=settings.api.api_key, tenant_id=settings.api.tenant_id),
            base_url=settings.api.base_url,
            transport=transport,
            retry_policy=retry,
            timeout=settings.timeouts.request_timeout_s,
            stream_timeout=settings.timeouts.stream_timeout_s,
            connect_timeout=settings.timeouts.connect_timeout_s,
        )

    @property
    def auth(self) -> AuthContext:
        return self._auth

    def health(self, cancel: Optional[CancellationSignal] = None) -> Dict[str, Any]:
        """Check service health. Sent without credentials."""
        return check_health(self._transport, self._retry, timeout=self._timeout, cancel=cancel)

    def is_available(self, cancel: Optional[CancellationSignal] = None) -> bool:
        """True when the health endpoint reports ok."""
        try:
            return self.health(cancel).get("status") == "ok"
        except (ServerError, TransportError) as e:
            self._logger.debug(f"Health check failed: {e}")
            return False

    def api_info(self, cancel: Optional[CancellationSignal] = None) -> Dict[str, Any]:
        """Service banner, e.g. ``{"name": "Goto Demo API"}``."""
        data = _get_public(self._transport, self._retry, API_INFO_PATH, self._timeout, cancel)
        if not isinstance(data, dict):
            raise ServerError(f"Unexpected API info payload: {data!r}", code="invalid_response")
        return data

    def close(self) -> None:
        closer = getattr(self._transport, "close", None)
        if callable(closer):
            closer()

    def __enter__(self) -> GotoClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
