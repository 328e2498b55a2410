"""
Base resource service - Shared request plumbing for the resource clients.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Mapping, Optional

from ..domain.interfaces.transport import CancellationSignal, FormValue, RawResponse, Transport
from ..domain.models.auth import AuthContext
from ..domain.services.error_mapper import map_http_error
from ..infrastructure.http.retry import RetryPolicy


class ResourceService:
    """Authenticated, retried request execution shared by every resource client."""

    def __init__(
        self,
        auth: AuthContext,
        transport: Transport,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None
    ):
        self._auth = auth
        self._transport = transport
        self._retry = retry_policy or RetryPolicy()
        self._timeout = timeout
        self._logger = logger or logging.getLogger(self.__class__.__module__)

    def _headers(self, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        # Credentials first, request-specific headers after
        headers = dict(self._auth.headers())
        headers.update(extra or {})
        return headers

    def _send_checked(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        json_body: Any = None,
        form_fields: Optional[Mapping[str, FormValue]] = None,
        query: Optional[Mapping[str, Any]] = None,
        stream: bool = False,
        timeout: Optional[float] = None,
        cancel: Optional[CancellationSignal] = None
    ) -> RawResponse:
        """Single attempt: send and raise the classified error for non-2xx."""
        response = self._transport.send(
            method,
            path,
            headers=self._headers(headers),
            json_body=json_body,
            form_fields=form_fields,
            query=query,
            stream=stream,
            timeout=timeout or self._timeout,
            cancel=cancel,
        )
        if not response.ok:
            body = response.read() if response.is_streaming else response.body
            raise map_http_error(response.status, body, response.reason)
        return response

    def _request_json(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        form_fields: Optional[Mapping[str, FormValue]] = None,
        query: Optional[Mapping[str, Any]] = None,
        cancel: Optional[CancellationSignal] = None
    ) -> Any:
        """Execute a request under the retry policy and decode the JSON body."""
        def _attempt() -> Any:
            response = self._send_checked(
                method,
                path,
                json_body=json_body,
                form_fields=form_fields,
                query=query,
                cancel=cancel,
            )
            return response.json()

        return self._retry.execute(_attempt, cancel=cancel)
