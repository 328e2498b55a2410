"""
Authentication context - Credentials shared by every resource client.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict

from .errors import ConfigError


API_KEY_HEADER = "x-api-key"
TENANT_HEADER = "x-tenant-id"


@dataclass(frozen=True)
class AuthContext:
    """API key and tenant id. Immutable, safe to share across threads."""
    api_key: str
    tenant_id: str

    def __post_init__(self):
        missing = []
        if not isinstance(self.api_key, str) or not self.api_key.strip():
            missing.append("api_key")
        if not isinstance(self.tenant_id, str) or not self.tenant_id.strip():
            missing.append("tenant_id")
        if missing:
            raise ConfigError(f"Missing required credentials: {', '.join(missing)}")

    def headers(self) -> Dict[str, str]:
        """Headers that authenticate a request for this tenant."""
        return {
            API_KEY_HEADER: self.api_key,
            TENANT_HEADER: self.tenant_id,
        }

    def __repr__(self) -> str:
        return f"AuthContext(api_key='***', tenant_id={self.tenant_id!r})"
