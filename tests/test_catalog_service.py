import math
import uuid
from decimal import Decimal

import pytest

from goto_client.application.catalog_service import CatalogService
from goto_client.domain.models.errors import NotFoundError, ValidationError

from conftest import FakeTransport, json_response

PRODUCT_ID = "3f1c2a9e-8d4b-4c6a-9f0e-1b2c3d4e5f60"


def _product(pid=PRODUCT_ID, **overrides):
    data = {
        "id": pid,
        "name": "Modern Glass Door",
        "sku": "DOOR-GL-001",
        "imageUrl": "https://cdn.example.com/door.jpg",
        "description": "Frameless tempered glass entry door",
        "price": "1299.00",
        "metadata": {"category": "exterior"},
        "createdAt": "2024-01-10T12:00:00Z",
        "updatedAt": "2024-02-01T08:30:00Z",
        "deletedAt": None,
    }
    data.update(overrides)
    return data


def _page_payload(total, page, limit):
    pages = math.ceil(total / limit)
    count = max(0, min(limit, total - (page - 1) * limit))
    return {
        "items": [_product(str(uuid.uuid4())) for _ in range(count)],
        "pagination": {"total": total, "pages": pages, "page": page, "limit": limit, "hasMore": page < pages},
    }


def _service(transport, auth, retry_policy):
    return CatalogService(auth, transport, retry_policy=retry_policy)


@pytest.mark.parametrize("total,page,limit", [(45, 1, 20), (45, 3, 20), (100, 1, 100), (0, 1, 1), (7, 2, 5)])
def test_list_products_page_invariants(auth, retry_policy, total, page, limit):
    transport = FakeTransport(json_response(200, _page_payload(total, page, limit)))
    result = _service(transport, auth, retry_policy).list_products(page=page, limit=limit)

    p = result.pagination
    assert p.pages == math.ceil(total / limit)
    assert len(result.items) <= limit
    assert result.has_more == (p.page < p.pages)


def test_list_products_sends_headers_and_query(auth, retry_policy):
    transport = FakeTransport(json_response(200, _page_payload(3, 1, 20)))
    _service(transport, auth, retry_policy).list_products(sort_by="price", sort_order="desc", search="door")

    call = transport.calls[0]
    assert call["method"] == "GET"
    assert call["path"] == "/api/catalog/products"
    assert call["headers"]["x-api-key"] == "test-key-123"
    assert call["headers"]["x-tenant-id"] == "tenant-a"
    assert call["query"] == {"page": 1, "limit": 20, "sort_by": "price", "sort_order": "desc", "search": "door"}


@pytest.mark.parametrize("kwargs", [
    {"limit": 0},
    {"limit": 101},
    {"page": 0},
    {"page": -1},
    {"sort_order": "up"},
    {"limit": True},
])
def test_out_of_range_arguments_fail_before_dispatch(auth, retry_policy, kwargs):
    transport = FakeTransport()
    with pytest.raises(ValidationError):
        _service(transport, auth, retry_policy).list_products(**kwargs)
    assert transport.calls == []


def test_get_product_returns_matching_id(auth, retry_policy):
    transport = FakeTransport(json_response(200, _product()))
    product = _service(transport, auth, retry_policy).get_product(PRODUCT_ID)

    assert str(product.id) == PRODUCT_ID
    assert product.price == Decimal("1299.00")
    assert product.image_url == "https://cdn.example.com/door.jpg"
    assert product.metadata == {"category": "exterior"}
    assert product.is_active
    assert transport.calls[0]["path"] == f"/api/catalog/products/{PRODUCT_ID}"


def test_get_unknown_product_raises_not_found_without_retry(auth, retry_policy, sleeps):
    transport = FakeTransport(json_response(404, {"error": {"status": 404, "code": "NOT_FOUND", "message": "Product not found"}}))
    with pytest.raises(NotFoundError) as exc:
        _service(transport, auth, retry_policy).get_product(uuid.uuid4())
    assert exc.value.code == "NOT_FOUND"
    assert len(transport.calls) == 1
    assert sleeps == []


def test_get_product_rejects_non_uuid_locally(auth, retry_policy):
    transport = FakeTransport()
    with pytest.raises(ValidationError):
        _service(transport, auth, retry_policy).get_product("not-a-uuid")
    assert transport.calls == []


def test_soft_deleted_product_keeps_data(auth, retry_policy):
    transport = FakeTransport(json_response(200, _product(deletedAt="2024-03-01T00:00:00Z")))
    product = _service(transport, auth, retry_policy).get_product(PRODUCT_ID)
    assert not product.is_active
    assert product.name == "Modern Glass Door"


def test_server_error_is_retried_then_succeeds(auth, retry_policy, sleeps):
    transport = FakeTransport(
        json_response(500, {"error": "db timeout"}),
        json_response(200, _product()),
    )
    product = _service(transport, auth, retry_policy).get_product(PRODUCT_ID)
    assert str(product.id) == PRODUCT_ID
    assert len(transport.calls) == 2
    assert sleeps == [1.0]


def test_iter_products_walks_all_pages(auth, retry_policy):
    transport = FakeTransport(
        json_response(200, _page_payload(5, 1, 2)),
        json_response(200, _page_payload(5, 2, 2)),
        json_response(200, _page_payload(5, 3, 2)),
    )
    items = list(_service(transport, auth, retry_policy).iter_products(limit=2))
    assert len(items) == 5
    assert [c["query"]["page"] for c in transport.calls] == [1, 2, 3]
