"""
Transport protocol interface.
Defines the contract the resource clients use to reach the HTTP API.
"""

from __future__ import annotations
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Protocol, Union

from ..models.errors import ServerError


@dataclass(frozen=True)
class BinaryPart:
    """Binary multipart field with its declared media type."""
    content: bytes
    media_type: str = "application/octet-stream"
    filename: str = "upload"


FormValue = Union[str, int, float, bool, BinaryPart, Any]


@dataclass
class RawResponse:
    """Unclassified HTTP response.

    Buffered responses carry ``body``; streaming responses carry a chunk
    iterator instead and must be closed by whoever consumes them.
    """
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    reason: Optional[str] = None
    chunks: Optional[Iterator[bytes]] = None
    closer: Optional[Callable[[], None]] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_streaming(self) -> bool:
        return self.chunks is not None

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the buffered body as JSON."""
        try:
            return json.loads(self.body)
        except (ValueError, UnicodeDecodeError) as e:
            raise ServerError(
                f"Response body is not valid JSON: {self.text()[:120]!r}",
                status=self.status,
                code="invalid_response"
            ) from e

    def iter_chunks(self) -> Iterator[bytes]:
        if self.chunks is None:
            if self.body:
                yield self.body
            return
        yield from self.chunks

    def read(self) -> bytes:
        """Drain a streaming body into ``body`` and close the connection."""
        if self.chunks is not None:
            try:
                self.body = b"".join(self.chunks)
            finally:
                self.chunks = None
                self.close()
        return self.body

    def close(self) -> None:
        if self.closer is not None:
            closer, self.closer = self.closer, None
            closer()


class CancellationSignal(Protocol):
    """Anything that can tell whether the caller gave up."""

    @property
    def cancelled(self) -> bool:
        ...

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback run on cancellation; returns an unregister function."""
        ...

    def wait(self, timeout: float) -> bool:
        """Block up to ``timeout`` seconds; True if cancelled meanwhile."""
        ...


class Transport(Protocol):
    """Protocol for request execution against the API."""

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
        """Execute one request. Never raises for non-2xx statuses."""
        ...
