from decimal import Decimal
import pytest
from httpx import AsyncClient

from app.core.errors import RepositoryError
from app.core.routing import BackendRouter, RoutingMode
from app.core.schemas import Order
from conftest import SELECTOR


@pytest.mark.asyncio
async def test_get_orders_empty(client: AsyncClient):
    """Empty JSON array, not null, when there are no orders"""
    response = await client.get("/orders")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_insert_order(client: AsyncClient, secondary_repository):
    payload = {"order_id": "66", "namespace": "N7", "total": 12.5}
    response = await client.post("/orders", json=payload)

    assert response.status_code == 201
    assert response.content == b""
    assert secondary_repository.list_all() == [
        Order(order_id="66", namespace="N7", total=Decimal("12.5"))
    ]


@pytest.mark.asyncio
async def test_insert_then_list(client: AsyncClient):
    await client.post("/orders", json={"order_id": "66", "namespace": "N7", "total": 12.5})

    response = await client.get("/orders")

    assert response.status_code == 200
    assert response.json() == [{"order_id": "66", "namespace": "N7", "total": 12.5}]


@pytest.mark.asyncio
async def test_insert_duplicate_order(client: AsyncClient):
    """Same order twice returns 409 Conflict"""
    payload = {"order_id": "66", "total": 12.5}
    first = await client.post("/orders", json=payload)
    response = await client.post("/orders", json=payload)

    assert first.status_code == 201
    assert response.status_code == 409
    assert response.json()["detail"] == "Order 66 already exists."


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"total": 12.5},
        {"order_id": "", "total": 12.5},
        {"order_id": "66"},
        {"order_id": "66", "total": 0},
        {"order_id": "66", "total": "lots"},
        {"order_id": "x" * 65, "total": 1},
        {"order_id": "66", "total": 0.001},
        {"order_id": "66", "total": 12.345},
        {"order_id": "66", "total": 1000000},
    ],
)
async def test_insert_invalid_order(client: AsyncClient, secondary_repository, payload):
    """Invalid payload returns 400 Bad Request and stores nothing"""
    response = await client.post("/orders", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Invalid request body")
    assert secondary_repository.list_all() == []


@pytest.mark.asyncio
async def test_insert_malformed_json(client: AsyncClient):
    response = await client.post(
        "/orders", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Invalid request body")


@pytest.mark.asyncio
async def test_namespace_defaults(client: AsyncClient):
    await client.post("/orders", json={"order_id": "1", "total": 10})

    response = await client.get("/namespace/default/orders")

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["namespace"] == "default"


@pytest.mark.asyncio
async def test_get_namespace_orders(client: AsyncClient):
    await client.post("/orders", json={"order_id": "1", "namespace": "a", "total": 1})
    await client.post("/orders", json={"order_id": "2", "namespace": "b", "total": 2})

    response = await client.get("/namespace/a/orders")

    assert response.status_code == 200
    assert [order["order_id"] for order in response.json()] == ["1"]


@pytest.mark.asyncio
async def test_delete_orders(client: AsyncClient):
    await client.post("/orders", json={"order_id": "1", "namespace": "a", "total": 1})
    await client.post("/orders", json={"order_id": "2", "namespace": "b", "total": 2})

    response = await client.delete("/orders")

    assert response.status_code == 204
    assert (await client.get("/orders")).json() == []


@pytest.mark.asyncio
async def test_delete_namespace_orders(client: AsyncClient):
    await client.post("/orders", json={"order_id": "1", "namespace": "a", "total": 1})
    await client.post("/orders", json={"order_id": "2", "namespace": "b", "total": 2})

    response = await client.delete("/namespace/a/orders")

    assert response.status_code == 204
    remaining = (await client.get("/orders")).json()
    assert [(o["order_id"], o["namespace"]) for o in remaining] == [("2", "b")]


@pytest.mark.asyncio
async def test_routing_header_selects_backend(
    client: AsyncClient, primary_headers, primary_repository, secondary_repository
):
    await client.post("/orders", json={"order_id": "p", "total": 1}, headers=primary_headers)
    await client.post("/orders", json={"order_id": "s", "total": 1})
    await client.post(
        "/orders", json={"order_id": "o", "total": 1}, headers={"end-user": "someone-else"}
    )

    assert [o.order_id for o in primary_repository.list_all()] == ["p"]
    assert sorted(o.order_id for o in secondary_repository.list_all()) == ["o", "s"]

    response = await client.get("/orders", headers=primary_headers)
    assert [o["order_id"] for o in response.json()] == ["p"]


@pytest.mark.asyncio
async def test_same_order_on_both_backends(client: AsyncClient, primary_headers):
    """Duplicate detection is per backend"""
    payload = {"order_id": "66", "total": 12.5}

    assert (await client.post("/orders", json=payload)).status_code == 201
    assert (
        await client.post("/orders", json=payload, headers=primary_headers)
    ).status_code == 201


@pytest.mark.asyncio
async def test_routing_header_name_comes_from_router(
    client: AsyncClient, backend_router: BackendRouter, primary_repository
):
    backend_router.header = "x-tenant"

    await client.post(
        "/orders", json={"order_id": "p", "total": 1}, headers={"x-tenant": SELECTOR}
    )
    await client.post(
        "/orders", json={"order_id": "s", "total": 1}, headers={"end-user": SELECTOR}
    )

    assert [o.order_id for o in primary_repository.list_all()] == ["p"]


@pytest.mark.asyncio
async def test_strict_routing_rejects_other_selectors(
    client: AsyncClient, backend_router: BackendRouter, primary_headers
):
    backend_router.mode = RoutingMode.STRICT

    rejected = await client.get("/orders", headers={"end-user": "someone-else"})
    missing = await client.get("/orders")
    accepted = await client.get("/orders", headers=primary_headers)

    assert rejected.status_code == 403
    assert missing.status_code == 403
    assert accepted.status_code == 200


@pytest.mark.asyncio
async def test_store_failure_returns_500(
    client: AsyncClient, secondary_repository, monkeypatch
):
    def broken(*args, **kwargs):
        raise RepositoryError("while reading orders from DB")

    monkeypatch.setattr(secondary_repository, "list_all", broken)
    monkeypatch.setattr(secondary_repository, "insert", broken)
    monkeypatch.setattr(secondary_repository, "delete_by_namespace", broken)

    assert (await client.get("/orders")).status_code == 500
    response = await client.post("/orders", json={"order_id": "1", "total": 1})
    assert response.status_code == 500
    assert response.json()["detail"] == "Internal error."
    assert (await client.delete("/namespace/a/orders")).status_code == 500


@pytest.mark.asyncio
async def test_root_redirects_to_docs(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code in (302, 307)
    assert response.headers["location"].endswith("/docs")
