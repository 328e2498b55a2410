"""
Catalog service - Paginated product listing and lookup by id.
"""

from __future__ import annotations
from typing import Iterator, Optional, Union
from uuid import UUID

from ..domain.interfaces.transport import CancellationSignal
from ..domain.models.errors import ServerError, ValidationError
from ..domain.models.product import Page, Product
from .base import ResourceService

PRODUCTS_PATH = "/api/catalog/products"

MIN_LIMIT = 1
MAX_LIMIT = 100
SORT_ORDERS = ("asc", "desc")


def _validate_listing(page: int, limit: int, sort_order: Optional[str]) -> None:
    if not isinstance(page, int) or isinstance(page, bool) or page < 1:
        raise ValidationError(f"page must be an integer >= 1, got {page!r}")
    if not isinstance(limit, int) or isinstance(limit, bool) or not MIN_LIMIT <= limit <= MAX_LIMIT:
        raise ValidationError(f"limit must be an integer in [{MIN_LIMIT}, {MAX_LIMIT}], got {limit!r}")
    if sort_order is not None and sort_order not in SORT_ORDERS:
        raise ValidationError(f"sort_order must be 'asc' or 'desc', got {sort_order!r}")


class CatalogService(ResourceService):
    """Products catalog: list with pagination, fetch one by UUID."""

    def list_products(
        self,
        page: int = 1,
        limit: int = 20,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        search: Optional[str] = None,
        cancel: Optional[CancellationSignal] = None
    ) -> Page[Product]:
        """Fetch one page of products. Arguments are validated before dispatch."""
        _validate_listing(page, limit, sort_order)
        data = self._request_json(
            "GET",
            PRODUCTS_PATH,
            query={
                "page": page,
                "limit": limit,
                "sort_by": sort_by,
                "sort_order": sort_order,
                "search": search,
            },
            cancel=cancel,
        )
        return Page.from_dict(data, Product.from_dict)

    def iter_products(
        self,
        limit: int = 20,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        search: Optional[str] = None,
        cancel: Optional[CancellationSignal] = None
    ) -> Iterator[Product]:
        """Walk every page lazily, one request per page."""
        _validate_listing(1, limit, sort_order)
        page_number = 1
        while True:
            page = self.list_products(
                page=page_number,
                limit=limit,
                sort_by=sort_by,
                sort_order=sort_order,
                search=search,
                cancel=cancel,
            )
            yield from page.items
            if not page.has_more or not page.items:
                return
            page_number += 1

    def get_product(
        self,
        product_id: Union[UUID, str],
        cancel: Optional[CancellationSignal] = None
    ) -> Product:
        """Fetch a product by id. A missing product raises NotFoundError."""
        try:
            product_uuid = product_id if isinstance(product_id, UUID) else UUID(str(product_id))
        except ValueError as e:
            raise ValidationError(f"Product id must be a UUID, got {product_id!r}") from e
        data = self._request_json("GET", f"{PRODUCTS_PATH}/{product_uuid}", cancel=cancel)
        product = Product.from_dict(data)
        if product.id != product_uuid:
            raise ServerError(
                f"Requested product {product_uuid} but server returned {product.id}",
                code="invalid_response"
            )
        return product
