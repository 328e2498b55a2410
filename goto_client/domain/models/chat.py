"""
Chat domain models - Conversation history and streamed events.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Union

from .errors import ValidationError


class ChatRole(Enum):
    """Message roles accepted in chat history."""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """Represents a single message in chat history.

    ``role`` may be given as its string value; anything that is not a
    known role, a string ``content`` or a datetime ``timestamp`` raises
    ValidationError.
    """
    role: ChatRole
    content: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if not isinstance(self.role, ChatRole):
            try:
                object.__setattr__(self, "role", ChatRole(self.role))
            except ValueError as e:
                raise ValidationError(f"Chat role must be 'user' or 'assistant', got {self.role!r}") from e
        if not isinstance(self.content, str):
            raise ValidationError(f"Chat content must be a string, got {type(self.content).__name__}")
        if not isinstance(self.timestamp, datetime):
            raise ValidationError(f"Chat timestamp must be a datetime or ISO-8601 string, got {self.timestamp!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format for API calls."""
        return {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def coerce(cls, value: Union[ChatMessage, Dict[str, Any]]) -> ChatMessage:
        """Accept either a ChatMessage or its dict form."""
        if isinstance(value, ChatMessage):
            return value
        if not isinstance(value, dict):
            raise ValidationError(f"Invalid chat history entry: {value!r}")
        timestamp = value.get("timestamp")
        if isinstance(timestamp, str):
            try:
                timestamp = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
            except ValueError as e:
                raise ValidationError(f"Invalid chat timestamp: {timestamp!r}") from e
        content = value.get("content", "")
        if timestamp is None:
            return cls(role=value.get("role"), content=content)
        return cls(role=value.get("role"), content=content, timestamp=timestamp)


def history_to_wire(history: Iterable[Union[ChatMessage, Dict[str, Any]]]) -> list:
    return [ChatMessage.coerce(entry).to_dict() for entry in history]


class StreamEventType(Enum):
    """Event types emitted by the chat stream endpoint."""
    CONNECTED = "connected"
    RESPONSE_CHUNK = "response-chunk"
    END = "end"
    ERROR = "error"


@dataclass(frozen=True)
class Connected:
    message: str = ""
    type = StreamEventType.CONNECTED
    terminal = False


@dataclass(frozen=True)
class ResponseChunk:
    data: str
    type = StreamEventType.RESPONSE_CHUNK
    terminal = False


@dataclass(frozen=True)
class End:
    type = StreamEventType.END
    terminal = True


@dataclass(frozen=True)
class ErrorEvent:
    message: str
    type = StreamEventType.ERROR
    terminal = True


StreamEvent = Union[Connected, ResponseChunk, End, ErrorEvent]


def collect_text(events: Iterable[StreamEvent]) -> str:
    """Concatenate response chunks in arrival order."""
    return "".join(event.data for event in events if isinstance(event, ResponseChunk))
