"""
Stream decoder - Incremental text/event-stream parser for chat streaming.

Bytes are buffered until a full line is available, so a frame split across
network reads is only parsed once complete. ``data:`` lines accumulate
until a blank line dispatches the event.
"""

from __future__ import annotations
import json
import logging
from typing import Iterable, Iterator, List, Optional, Union

from ..models.chat import Connected, End, ErrorEvent, ResponseChunk, StreamEvent, StreamEventType

_MAX_PREVIEW = 120


def parse_event(payload: str) -> StreamEvent:
    """Classify one JSON event payload by its ``type`` field."""
    try:
        data = json.loads(payload)
    except ValueError:
        return ErrorEvent(message=f"malformed event payload: {payload[:_MAX_PREVIEW]}")
    if not isinstance(data, dict):
        return ErrorEvent(message=f"malformed event payload: {payload[:_MAX_PREVIEW]}")

    event_type = data.get("type")
    if event_type == StreamEventType.CONNECTED.value:
        return Connected(message=str(data.get("message") or ""))
    if event_type == StreamEventType.RESPONSE_CHUNK.value:
        chunk = data.get("data")
        return ResponseChunk(data="" if chunk is None else str(chunk))
    if event_type == StreamEventType.END.value:
        return End()
    if event_type == StreamEventType.ERROR.value:
        message = data.get("message") or data.get("error") or "stream error"
        return ErrorEvent(message=str(message))
    return ErrorEvent(message=f"unknown event type: {event_type}")


class SSEDecoder:
    """Stateful decoder turning raw byte chunks into stream events."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(__name__)
        self._buffer = bytearray()
        self._data_lines: List[str] = []

    @property
    def pending_bytes(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: Union[bytes, str]) -> List[StreamEvent]:
        """Consume one network read and return every event it completes."""
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        self._buffer.extend(chunk)
        events: List[StreamEvent] = []
        while True:
            newline = self._buffer.find(b"\n")
            if newline < 0:
                break
            line = bytes(self._buffer[:newline])
            del self._buffer[:newline + 1]
            event = self._process_line(line)
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> List[StreamEvent]:
        """Finish decoding at end of stream."""
        events: List[StreamEvent] = []
        if self._buffer:
            line = bytes(self._buffer)
            self._buffer.clear()
            event = self._process_line(line)
            if event is not None:
                events.append(event)
        event = self._dispatch()
        if event is not None:
            events.append(event)
        return events

    def _process_line(self, line: bytes) -> Optional[StreamEvent]:
        if line.endswith(b"\r"):
            line = line[:-1]
        if not line:
            return self._dispatch()
        text = line.decode("utf-8", errors="replace")
        if text.startswith(":"):
            return None
        name, _, value = text.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "data":
            self._data_lines.append(value)
        else:
            # event:, id: and retry: carry nothing the JSON payload lacks
            self._logger.debug(f"Ignoring SSE field {name!r}")
        return None

    def _dispatch(self) -> Optional[StreamEvent]:
        if not self._data_lines:
            return None
        payload = "\n".join(self._data_lines)
        self._data_lines = []
        return parse_event(payload)


def decode_stream(chunks: Iterable[Union[bytes, str]]) -> Iterator[StreamEvent]:
    """Lazily decode an iterable of network reads into stream events."""
    decoder = SSEDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
    yield from decoder.flush()
