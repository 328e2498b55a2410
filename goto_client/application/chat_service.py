"""
Chat service - Single-shot and streaming product chat.

Only the connection phase of a stream runs under the retry policy. Once
the server has answered 2xx the stream is never retried: a mid-stream
failure becomes an ErrorEvent and the caller decides whether to ask again.
"""

from __future__ import annotations
import logging
import time
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, Union

from ..domain.interfaces.transport import CancellationSignal, RawResponse, Transport
from ..domain.models.auth import AuthContext
from ..domain.models.chat import (
    ChatMessage,
    Connected,
    ErrorEvent,
    ResponseChunk,
    StreamEvent,
    history_to_wire,
)
from ..domain.models.errors import ServerError, TransportError, ValidationError
from ..domain.services.stream_decoder import SSEDecoder
from ..infrastructure.http.retry import RetryPolicy
from .base import ResourceService

CHAT_PATH = "/api/products-chat"
CHAT_STREAM_PATH = "/api/products-chat/stream"

MAX_MESSAGE_LENGTH = 2000
MAX_SESSION_ID_LENGTH = 100
MAX_PRODUCT_LIMIT = 20
DEFAULT_STREAM_TIMEOUT = 120.0


def _check_length(name: str, value: Any, maximum: int) -> None:
    if not isinstance(value, str) or not 1 <= len(value) <= maximum:
        length = len(value) if isinstance(value, str) else None
        raise ValidationError(f"{name} must be a string of 1-{maximum} characters (got length {length})")


class ChatStream:
    """Single-use, forward-only sequence of stream events for one chat turn.

    Iterating again after exhaustion yields nothing; call ``ChatService.stream``
    for a fresh turn. Use as a context manager to release the connection
    when stopping early.
    """

    def __init__(
        self,
        response: RawResponse,
        started_at: float,
        deadline: float = DEFAULT_STREAM_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None
    ):
        self._response = response
        self._started_at = started_at
        self._deadline = deadline
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)
        self._events = self._run()
        self._chunks: list = []
        self.error: Optional[ErrorEvent] = None

    def __iter__(self) -> Iterator[StreamEvent]:
        return self

    def __next__(self) -> StreamEvent:
        return next(self._events)

    def __enter__(self) -> ChatStream:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Stop the stream and release the connection."""
        self._events.close()
        self._response.close()

    def collect_text(self) -> str:
        """Drain the remaining events and return the concatenated reply text."""
        for _ in self:
            pass
        return "".join(self._chunks)

    def _run(self) -> Iterator[StreamEvent]:
        decoder = SSEDecoder(logger=self._logger)
        saw_connected = False
        try:
            for chunk in self._response.iter_chunks():
                for event in decoder.feed(chunk):
                    if not saw_connected and not isinstance(event, Connected):
                        self._logger.warning(f"Stream opened with {type(event).__name__} instead of Connected")
                    saw_connected = True
                    yield self._track(event)
                    if event.terminal:
                        return
                if self._clock() - self._started_at > self._deadline:
                    yield self._track(ErrorEvent(message=f"stream exceeded {self._deadline:.0f}s deadline"))
                    return
            for event in decoder.flush():
                yield self._track(event)
                if event.terminal:
                    return
        except TransportError as e:
            self._logger.warning(f"Chat stream interrupted: {e}")
            yield self._track(ErrorEvent(message=f"stream interrupted: {e.message}"))
            return
        finally:
            self._response.close()
        yield self._track(ErrorEvent(message="stream ended without a terminal event"))

    def _track(self, event: StreamEvent) -> StreamEvent:
        if isinstance(event, ResponseChunk):
            self._chunks.append(event.data)
        elif isinstance(event, ErrorEvent):
            self.error = event
        return event


class ChatService(ResourceService):
    """Products chat assistant."""

    def __init__(
        self,
        auth: AuthContext,
        transport: Transport,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: Optional[float] = None,
        stream_timeout: float = DEFAULT_STREAM_TIMEOUT,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(auth, transport, retry_policy=retry_policy, timeout=timeout, logger=logger)
        self._stream_timeout = stream_timeout

    def send(self, message: str, cancel: Optional[CancellationSignal] = None) -> str:
        """Ask one question and return the assistant's full reply."""
        _check_length("message", message, MAX_MESSAGE_LENGTH)
        data = self._request_json("POST", CHAT_PATH, json_body={"message": message}, cancel=cancel)
        if not isinstance(data, str):
            raise ServerError(
                f"Chat reply must be a JSON string, got {type(data).__name__}",
                code="invalid_response"
            )
        return data

    def stream(
        self,
        message: str,
        session_id: str,
        chat_history: Optional[Iterable[Union[ChatMessage, Dict[str, Any]]]] = None,
        user_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
        include_products: Optional[bool] = None,
        product_limit: Optional[int] = None,
        cancel: Optional[CancellationSignal] = None
    ) -> ChatStream:
        """Open a streaming chat turn and return its events lazily."""
        _check_length("message", message, MAX_MESSAGE_LENGTH)
        _check_length("session_id", session_id, MAX_SESSION_ID_LENGTH)
        if product_limit is not None and (
            not isinstance(product_limit, int) or isinstance(product_limit, bool)
            or not 1 <= product_limit <= MAX_PRODUCT_LIMIT
        ):
            raise ValidationError(f"product_limit must be an integer in [1, {MAX_PRODUCT_LIMIT}], got {product_limit!r}")

        body: Dict[str, Any] = {"message": message, "sessionId": session_id}
        if chat_history is not None:
            body["chatHistory"] = history_to_wire(chat_history)
        if user_id is not None:
            body["userId"] = user_id
        if tenant_id is not None:
            body["tenantId"] = tenant_id
        if include_products is not None:
            body["includeProducts"] = include_products
        if product_limit is not None:
            body["productLimit"] = product_limit

        started = {}

        def _connect() -> RawResponse:
            started["at"] = time.monotonic()
            return self._send_checked(
                "POST",
                CHAT_STREAM_PATH,
                headers={"Accept": "text/event-stream"},
                json_body=body,
                stream=True,
                timeout=self._stream_timeout,
                cancel=cancel,
            )

        response = self._retry.execute(_connect, cancel=cancel)
        self._logger.debug(f"Chat stream connected for session {session_id}")
        return ChatStream(
            response,
            started_at=started["at"],
            deadline=self._stream_timeout,
            logger=self._logger,
        )
