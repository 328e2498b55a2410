"""Application layer - Resource clients for catalog, discovery and chat."""

from .base import ResourceService
from .catalog_service import CatalogService
from .chat_service import ChatService, ChatStream
from .discovery_service import DiscoveryService

__all__ = [
    "ResourceService",
    "CatalogService",
    "ChatService",
    "ChatStream",
    "DiscoveryService",
]
