"""Domain models package."""

from .auth import AuthContext
from .chat import (
    ChatMessage,
    ChatRole,
    Connected,
    End,
    ErrorEvent,
    ResponseChunk,
    StreamEvent,
    StreamEventType,
    collect_text,
)
from .errors import (
    AuthError,
    CancelledError,
    ConfigError,
    GotoClientError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TransportError,
    ValidationError,
)
from .filters import FilterClause, FilterOperator, normalize_filter
from .product import DiscoveryResponse, DiscoveryResult, Page, Pagination, Product

__all__ = [
    "AuthContext",
    "ChatMessage",
    "ChatRole",
    "Connected",
    "End",
    "ErrorEvent",
    "ResponseChunk",
    "StreamEvent",
    "StreamEventType",
    "collect_text",
    "AuthError",
    "CancelledError",
    "ConfigError",
    "GotoClientError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "TransportError",
    "ValidationError",
    "FilterClause",
    "FilterOperator",
    "normalize_filter",
    "DiscoveryResponse",
    "DiscoveryResult",
    "Page",
    "Pagination",
    "Product",
]
