"""
Product domain models - Catalog records, pages and discovery results.

Wire payloads use camelCase keys; snake_case is accepted as well so that
fixtures and older deployments decode the same way.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar
from uuid import UUID

from .errors import ServerError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, tolerating a trailing 'Z'."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ServerError(f"Invalid timestamp in response: {value!r}", code="invalid_response") from e


def _parse_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ServerError(f"Invalid price in response: {value!r}", code="invalid_response") from e


def _parse_uuid(value: Any) -> UUID:
    try:
        return UUID(str(value))
    except (ValueError, TypeError) as e:
        raise ServerError(f"Invalid product id in response: {value!r}", code="invalid_response") from e


@dataclass(frozen=True)
class Product:
    """A catalog product. Soft-deleted products keep their data."""
    id: UUID
    name: str
    sku: str
    description: str
    price: Decimal
    image_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Product:
        """Create Product from a wire payload."""
        if not isinstance(data, dict):
            raise ServerError(f"Expected product object, got {type(data).__name__}", code="invalid_response")
        return cls(**cls._fields_from(data))

    @staticmethod
    def _fields_from(data: Dict[str, Any]) -> Dict[str, Any]:
        if "id" not in data:
            raise ServerError("Product payload is missing 'id'", code="invalid_response")
        metadata = data.get("metadata")
        if metadata is not None and not isinstance(metadata, dict):
            raise ServerError("Product metadata must be an object or null", code="invalid_response")
        return {
            "id": _parse_uuid(data["id"]),
            "name": str(data.get("name", "")),
            "sku": str(data.get("sku", "")),
            "description": str(data.get("description") or ""),
            "price": _parse_decimal(data.get("price", 0)),
            "image_url": _pick(data, "imageUrl", "image_url"),
            "metadata": data.get("metadata"),
            "created_at": parse_datetime(_pick(data, "createdAt", "created_at")),
            "updated_at": parse_datetime(_pick(data, "updatedAt", "updated_at")),
            "deleted_at": parse_datetime(_pick(data, "deletedAt", "deleted_at")),
        }


@dataclass(frozen=True)
class Pagination:
    total: int
    pages: int
    page: int
    limit: int
    has_more: bool

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Pagination:
        try:
            return cls(
                total=int(data["total"]),
                pages=int(data["pages"]),
                page=int(data["page"]),
                limit=int(data["limit"]),
                has_more=bool(_pick(data, "hasMore", "has_more", default=False)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ServerError(f"Invalid pagination block: {data!r}", code="invalid_response") from e

    def violations(self, item_count: int) -> List[str]:
        """Return the page invariants this block breaks, if any."""
        problems = []
        expected_pages = math.ceil(self.total / self.limit) if self.limit > 0 else 0
        if self.pages != expected_pages:
            problems.append(f"pages={self.pages} but ceil(total/limit)={expected_pages}")
        if self.has_more != (self.page < self.pages):
            problems.append(f"hasMore={self.has_more} but page={self.page} of {self.pages}")
        if item_count > self.limit:
            problems.append(f"{item_count} items exceed limit={self.limit}")
        return problems


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results with its pagination block."""
    items: List[T]
    pagination: Pagination

    @property
    def has_more(self) -> bool:
        return self.pagination.has_more

    @classmethod
    def from_dict(cls, data: Dict[str, Any], item_factory: Callable[[Dict[str, Any]], T]) -> Page[T]:
        if not isinstance(data, dict) or "items" not in data or "pagination" not in data:
            raise ServerError("Page payload must contain 'items' and 'pagination'", code="invalid_response")
        items = [item_factory(item) for item in data["items"] or []]
        pagination = Pagination.from_dict(data["pagination"])
        problems = pagination.violations(len(items))
        if problems:
            logger.warning(f"Inconsistent pagination from server: {'; '.join(problems)}")
        return cls(items=items, pagination=pagination)


@dataclass(frozen=True)
class DiscoveryResult(Product):
    """A product returned by semantic discovery, with its relevance score."""
    similarity: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DiscoveryResult:
        if not isinstance(data, dict):
            raise ServerError(f"Expected discovery item object, got {type(data).__name__}", code="invalid_response")
        try:
            similarity = float(data.get("similarity", 0.0))
        except (TypeError, ValueError) as e:
            raise ServerError(f"Invalid similarity: {data.get('similarity')!r}", code="invalid_response") from e
        if not 0.0 <= similarity <= 1.0:
            logger.debug(f"Similarity {similarity} outside [0, 1] for product {data.get('id')}")
        return cls(similarity=similarity, **Product._fields_from(data))


@dataclass(frozen=True)
class DiscoveryResponse:
    """Discovery results in server order plus the optional confidence summary."""
    items: List[DiscoveryResult] = field(default_factory=list)
    confidence_message: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DiscoveryResponse:
        if not isinstance(data, dict):
            raise ServerError("Discovery response must be an object", code="invalid_response")
        return cls(
            items=[DiscoveryResult.from_dict(item) for item in data.get("items") or []],
            confidence_message=_pick(data, "confidenceMessage", "confidence_message"),
        )
