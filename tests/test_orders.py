import re

from httpx import ASGITransport, AsyncClient

from inventory_api.api.main import app
from inventory_api.core.deps import Principal
from inventory_api.db.models.master_data import Product
from inventory_api.db.models.sales import OrderStatus
from inventory_api.db.session import get_async_session
from inventory_api.repositories.security import UserRepository
from inventory_api.schemas.sales import OrderUpdate
from inventory_api.services.orders import OrderService
from tests.conftest import bearer, register


async def _create_order(client, headers, *items, notes=None):
    body = {"items": [{"product_id": pid, "quantity": qty} for pid, qty in items]}
    if notes is not None:
        body["notes"] = notes
    return await client.post("/api/v1/orders", json=body, headers=headers)


async def _stock(client, headers, product_id):
    return (await client.get(f"/api/v1/products/{product_id}", headers=headers)).json()["current_stock"]


async def test_create_order_prices_and_merges_lines(client, owner, make_product):
    pen = await make_product("PEN", price_sale=1.5, current_stock=10)
    pad = await make_product("PAD", price_sale=4.0, current_stock=3)

    resp = await _create_order(client, owner["headers"], (pen["id"], 2), (pad["id"], 1), (pen["id"], 3), notes="Rush")
    assert resp.status_code == 201
    order = resp.json()
    assert re.fullmatch(r"ORD-\d{8}-\d{4}", order["order_number"])
    assert order["status"] == "PENDING"
    assert order["notes"] == "Rush"
    assert order["total"] == 11.5
    lines = {item["product"]["sku"]: item for item in order["items"]}
    assert lines["PEN"]["quantity"] == 5
    assert lines["PEN"]["subtotal"] == 7.5
    assert lines["PAD"]["unit_price"] == 4.0

    # Creating an order does not touch stock.
    assert await _stock(client, owner["headers"], pen["id"]) == 10


async def test_create_order_validations(client, owner, make_product):
    product = await make_product("RARE", current_stock=1)

    empty = await client.post("/api/v1/orders", json={"items": []}, headers=owner["headers"])
    assert empty.status_code == 422

    too_many = await _create_order(client, owner["headers"], (product["id"], 2))
    assert too_many.status_code == 400
    assert "RARE" in too_many.json()["error"]["message"]

    unknown = await _create_order(client, owner["headers"], (999, 1))
    assert unknown.status_code == 400


async def test_cannot_order_other_tenants_products(client, make_product):
    product = await make_product("MINE", current_stock=5)
    other = await register(client, business="Thief", email="t@thief.com")
    resp = await _create_order(client, bearer(other["access_token"]), (product["id"], 1))
    assert resp.status_code == 400


async def test_completing_and_reopening_moves_stock(client, owner, make_product):
    product = await make_product("CUP", current_stock=5)
    order = (await _create_order(client, owner["headers"], (product["id"], 3))).json()

    done = await client.patch(f"/api/v1/orders/{order['id']}", json={"status": "COMPLETED"}, headers=owner["headers"])
    assert done.status_code == 200
    assert done.json()["status"] == "COMPLETED"
    assert await _stock(client, owner["headers"], product["id"]) == 2

    # Completing again is not a transition and moves nothing.
    again = await client.patch(f"/api/v1/orders/{order['id']}", json={"status": "COMPLETED"}, headers=owner["headers"])
    assert again.status_code == 200
    assert await _stock(client, owner["headers"], product["id"]) == 2

    cancelled = await client.patch(
        f"/api/v1/orders/{order['id']}", json={"status": "CANCELLED"}, headers=owner["headers"]
    )
    assert cancelled.status_code == 200
    assert await _stock(client, owner["headers"], product["id"]) == 5

    # Orders write no ledger rows.
    ledger = (await client.get("/api/v1/inventory/transactions", headers=owner["headers"])).json()
    assert ledger["meta"]["total"] == 0


async def test_completing_rechecks_stock(client, owner, make_product):
    product = await make_product("LAMP", current_stock=4)
    order = (await _create_order(client, owner["headers"], (product["id"], 3))).json()
    await client.post(
        "/api/v1/inventory/out", json={"product_id": product["id"], "quantity": 2}, headers=owner["headers"]
    )

    resp = await client.patch(f"/api/v1/orders/{order['id']}", json={"status": "COMPLETED"}, headers=owner["headers"])
    assert resp.status_code == 400
    assert await _stock(client, owner["headers"], product["id"]) == 2
    current = (await client.get(f"/api/v1/orders/{order['id']}", headers=owner["headers"])).json()
    assert current["status"] == "PENDING"


async def test_notes_only_update(client, owner, make_product):
    product = await make_product("NOTE", current_stock=1)
    order = (await _create_order(client, owner["headers"], (product["id"], 1))).json()
    resp = await client.patch(f"/api/v1/orders/{order['id']}", json={"notes": "Gift wrap"}, headers=owner["headers"])
    assert resp.json()["notes"] == "Gift wrap"
    assert resp.json()["status"] == "PENDING"


async def test_list_filters_sorts_and_searches(client, owner, make_user, make_product):
    cheap = await make_product("CHEAP", price_sale=1.0, current_stock=50)
    pricey = await make_product("PRICEY", price_sale=100.0, current_stock=50)
    clerk = await make_user("martha@acme.com")

    first = (await _create_order(client, owner["headers"], (cheap["id"], 1))).json()
    second = (await _create_order(client, clerk["headers"], (pricey["id"], 1))).json()
    await client.patch(f"/api/v1/orders/{first['id']}", json={"status": "CANCELLED"}, headers=owner["headers"])

    async def numbers(**params):
        resp = await client.get("/api/v1/orders", params=params, headers=owner["headers"])
        assert resp.status_code == 200
        return [o["order_number"] for o in resp.json()["data"]]

    assert await numbers(sort="highest_total") == [second["order_number"], first["order_number"]]
    assert await numbers(sort="lowest_total") == [first["order_number"], second["order_number"]]
    assert await numbers(status="CANCELLED") == [first["order_number"]]
    assert await numbers(search="martha") == [second["order_number"]]
    assert await numbers(search=first["order_number"].lower()) == [first["order_number"]]


async def test_pending_count(client, owner, make_product):
    product = await make_product("P", current_stock=9)
    for _ in range(3):
        await _create_order(client, owner["headers"], (product["id"], 1))
    resp = await client.get("/api/v1/orders/stats/pending-count", headers=owner["headers"])
    assert resp.json() == {"count": 3}


async def test_only_pending_orders_can_be_deleted(client, owner, make_product):
    product = await make_product("DEL", current_stock=9)
    pending = (await _create_order(client, owner["headers"], (product["id"], 1))).json()
    done = (await _create_order(client, owner["headers"], (product["id"], 1))).json()
    await client.patch(f"/api/v1/orders/{done['id']}", json={"status": "COMPLETED"}, headers=owner["headers"])

    assert (await client.delete(f"/api/v1/orders/{done['id']}", headers=owner["headers"])).status_code == 400
    assert (await client.delete(f"/api/v1/orders/{pending['id']}", headers=owner["headers"])).status_code == 200
    assert (await client.get(f"/api/v1/orders/{pending['id']}", headers=owner["headers"])).status_code == 404


async def test_orders_are_tenant_scoped(client, owner, make_product):
    product = await make_product("SCOPE", current_stock=2)
    order = (await _create_order(client, owner["headers"], (product["id"], 1))).json()
    other = bearer((await register(client, business="Peeker", email="p@peeker.com"))["access_token"])
    assert (await client.get(f"/api/v1/orders/{order['id']}", headers=other)).status_code == 404


async def test_notes_can_be_cleared(client, owner, make_product):
    product = await make_product("WRAP", current_stock=1)
    order = (await _create_order(client, owner["headers"], (product["id"], 1), notes="Gift wrap")).json()

    kept = await client.patch(f"/api/v1/orders/{order['id']}", json={"status": "PENDING"}, headers=owner["headers"])
    assert kept.json()["notes"] == "Gift wrap"

    cleared = await client.patch(f"/api/v1/orders/{order['id']}", json={"notes": None}, headers=owner["headers"])
    assert cleared.status_code == 200
    assert cleared.json()["notes"] is None


async def test_stale_completion_does_not_move_stock_twice(file_session_maker):
    async def override_get_session():
        async with file_session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_session
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
            data = await register(http)
            headers = bearer(data["access_token"])
            product = (
                await http.post(
                    "/api/v1/products",
                    json={"sku": "BOLT", "name": "Bolt", "price_sale": 1.0, "current_stock": 10},
                    headers=headers,
                )
            ).json()
            order = (await _create_order(http, headers, (product["id"], 3))).json()
    finally:
        app.dependency_overrides.clear()

    async def principal_for(session):
        user = await UserRepository(session).get_by_id(data["user"]["id"])
        return Principal(user=user, tenant_id=user.tenant_id, role="ADMIN")

    async with file_session_maker() as first, file_session_maker() as second:
        first_principal, second_principal = await principal_for(first), await principal_for(second)
        # The second session has already loaded the order while it was PENDING.
        stale = await OrderService(second).get(second_principal, order["id"])
        assert stale.status == OrderStatus.PENDING

        await OrderService(first).update(first_principal, order["id"], OrderUpdate(status=OrderStatus.COMPLETED))
        result = await OrderService(second).update(
            second_principal, order["id"], OrderUpdate(status=OrderStatus.COMPLETED)
        )
        assert result.status == OrderStatus.COMPLETED

    async with file_session_maker() as session:
        stored = await session.get(Product, product["id"])
        assert stored.current_stock == 7
