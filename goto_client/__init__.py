"""
Goto Client - Typed client for the Goto products catalog, discovery and chat API.
"""

__version__ = "1.0.0"
__author__ = "Goto Demo Team"

__all__ = [
    "GotoClient",
    "check_health",
    "AuthContext",
    "CancellationToken",
    "RetryConfig",
    "RetryPolicy",
]

# Lazy attribute access to avoid importing requests/pydantic at package import time.
# This keeps `import goto_client.domain...` safe during test collection.
def __getattr__(name: str):  # pragma: no cover - simple lazy loader
    if name in {"GotoClient", "check_health"}:
        from . import client as _client
        return getattr(_client, name)
    if name == "AuthContext":
        from .domain.models.auth import AuthContext as _A
        return _A
    if name in {"CancellationToken", "RetryConfig", "RetryPolicy"}:
        from .infrastructure import http as _http
        return getattr(_http, name)
    raise AttributeError(f"module 'goto_client' has no attribute {name!r}")
