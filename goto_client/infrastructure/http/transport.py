"""
HTTP transport - Infrastructure implementation of the Transport protocol.
Executes single requests on a requests.Session without retries or error policy.
"""

from __future__ import annotations
import json
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import requests

from ...domain.interfaces.transport import BinaryPart, CancellationSignal, FormValue, RawResponse
from ...domain.models.errors import CancelledError, TransportError, ValidationError


DEFAULT_USER_AGENT = "goto-client/1.0"
BODY_CHUNK_SIZE = 64 * 1024


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _form_part(value: FormValue) -> Tuple[Optional[str], Any, Optional[str]]:
    if isinstance(value, BinaryPart):
        return (value.filename, value.content, value.media_type)
    if isinstance(value, (bytes, bytearray)):
        return ("upload", bytes(value), "application/octet-stream")
    if isinstance(value, str):
        return (None, value, None)
    # Non-string scalars and structures travel as JSON text
    return (None, json.dumps(value), None)


def _without_content_type(headers: Dict[str, str]) -> Dict[str, str]:
    return {k: v for k, v in headers.items() if k.lower() != "content-type"}


def _discard_late_response(future: Future) -> None:
    # The caller gave up on this request; release its connection once it lands
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()


class RequestsTransport:
    """Transport backed by ``requests``. Raises only for connection-level failures.

    Every request is issued with ``stream=True`` so that a cancellation
    callback can close the response while its body is being read. Calls
    made with a cancellation token are dispatched on a small worker pool:
    urllib3 cannot interrupt the connect and header phase, so a cancelled
    caller is released immediately and the late response is closed when it
    arrives.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        connect_timeout: float = 5.0,
        default_timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        stream_chunk_size: Optional[int] = None,
        max_workers: int = 8,
        logger: Optional[logging.Logger] = None
    ):
        if not base_url:
            raise ValidationError("base_url is required")
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._connect_timeout = connect_timeout
        self._default_timeout = default_timeout
        self._user_agent = user_agent
        self._stream_chunk_size = stream_chunk_size
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def send(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        form_fields: Optional[Mapping[str, FormValue]] = None,
        query: Optional[Mapping[str, Any]] = None,
        stream: bool = False,
        timeout: Optional[float] = None,
        cancel: Optional[CancellationSignal] = None
    ) -> RawResponse:
        """Execute one request and return the raw status and body."""
        if json_body is not None and form_fields is not None:
            raise ValidationError("A request body is either JSON or multipart, not both")
        self._check_cancelled(cancel)

        request_headers: Dict[str, str] = {"User-Agent": self._user_agent}
        request_headers.update(headers or {})
        kwargs: Dict[str, Any] = {
            "params": {k: _query_value(v) for k, v in (query or {}).items() if v is not None},
            "timeout": (self._connect_timeout, timeout or self._default_timeout),
            "stream": True,
        }
        if json_body is not None:
            request_headers = _without_content_type(request_headers)
            request_headers["Content-Type"] = "application/json"
            kwargs["data"] = json.dumps(json_body)
        elif form_fields is not None:
            # requests sets the multipart boundary itself
            request_headers = _without_content_type(request_headers)
            files: List[Tuple[str, Tuple[Optional[str], Any, Optional[str]]]] = [
                (name, _form_part(value)) for name, value in form_fields.items() if value is not None
            ]
            kwargs["files"] = files
        kwargs["headers"] = request_headers

        url = self.url_for(path)
        start = time.perf_counter()
        try:
            response = self._dispatch(method.upper(), url, kwargs, cancel)
        except requests.exceptions.Timeout as e:
            self._check_cancelled(cancel)
            raise TransportError(f"{method.upper()} {path} timed out: {e}", code="timeout") from e
        except requests.exceptions.RequestException as e:
            self._check_cancelled(cancel)
            raise TransportError(f"{method.upper()} {path} failed: {e}", code="connection_error") from e

        self._logger.debug(
            "%s %s -> %s in %.1fms",
            method.upper(),
            path,
            response.status_code,
            (time.perf_counter() - start) * 1000.0,
        )

        if cancel is not None and cancel.cancelled:
            response.close()
            raise CancelledError(f"{method.upper()} {path} cancelled by caller")

        if stream:
            return self._streaming_response(response, path, cancel)

        return RawResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=self._read_body(response, path, cancel),
            reason=response.reason,
        )

    def _dispatch(
        self,
        method: str,
        url: str,
        kwargs: Dict[str, Any],
        cancel: Optional[CancellationSignal]
    ) -> requests.Response:
        if cancel is None:
            return self._session.request(method, url, **kwargs)

        future = self._pool().submit(self._session.request, method, url, **kwargs)
        settled = threading.Event()
        future.add_done_callback(lambda _: settled.set())
        unregister = cancel.add_callback(settled.set)
        try:
            settled.wait()
        finally:
            unregister()

        if not future.done():
            if not future.cancel():
                future.add_done_callback(_discard_late_response)
            raise CancelledError(f"{method} {url} cancelled by caller")
        # Re-raises the request's own exception for send() to classify
        return future.result()

    def _pool(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="goto-http",
                )
            return self._executor

    def _read_body(self, response: requests.Response, path: str, cancel: Optional[CancellationSignal]) -> bytes:
        unregister = cancel.add_callback(response.close) if cancel is not None else (lambda: None)
        try:
            body = b"".join(response.iter_content(chunk_size=BODY_CHUNK_SIZE))
        except Exception as e:
            self._raise_read_failure(e, f"Response of {path}", cancel)
            raise
        finally:
            unregister()
            response.close()
        # A close from cancel() may end the body early without an error
        self._check_cancelled(cancel)
        return body

    def _streaming_response(
        self,
        response: requests.Response,
        path: str,
        cancel: Optional[CancellationSignal]
    ) -> RawResponse:
        unregister = cancel.add_callback(response.close) if cancel is not None else (lambda: None)

        def _close() -> None:
            unregister()
            response.close()

        def _chunks() -> Iterator[bytes]:
            try:
                for chunk in response.iter_content(chunk_size=self._stream_chunk_size):
                    if chunk:
                        yield chunk
            except Exception as e:
                self._raise_read_failure(e, f"Stream from {path}", cancel)
                raise
            finally:
                _close()
            self._check_cancelled(cancel)

        return RawResponse(
            status=response.status_code,
            headers=dict(response.headers),
            reason=response.reason,
            chunks=_chunks(),
            closer=_close,
        )

    @staticmethod
    def _raise_read_failure(error: Exception, what: str, cancel: Optional[CancellationSignal]) -> None:
        # A connection closed by cancel() fails in whatever way urllib3 chooses
        if cancel is not None and cancel.cancelled:
            raise CancelledError(f"{what} cancelled by caller") from error
        if isinstance(error, (requests.exceptions.RequestException, OSError)):
            raise TransportError(f"{what} interrupted: {error}", code="connection_error") from error

    @staticmethod
    def _check_cancelled(cancel: Optional[CancellationSignal]) -> None:
        if cancel is not None and cancel.cancelled:
            raise CancelledError("Operation cancelled by caller")

    def close(self) -> None:
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False)
        self._session.close()
