from tests.conftest import bearer, register


async def test_create_product_and_duplicate_sku(client, owner, make_product):
    product = await make_product("MUG-1", name="Coffee Mug", price_cost=2.5, price_sale=7.99, current_stock=4)
    assert product["sku"] == "MUG-1"
    assert product["price_sale"] == 7.99
    assert product["supplier"] is None

    dup = await client.post("/api/v1/products", json={"sku": "MUG-1", "name": "Again"}, headers=owner["headers"])
    assert dup.status_code == 409


async def test_same_sku_allowed_in_another_tenant(client, make_product):
    await make_product("SHARED")
    other = await register(client, business="Other", email="o@other.com")
    resp = await client.post(
        "/api/v1/products", json={"sku": "SHARED", "name": "Shared"}, headers=bearer(other["access_token"])
    )
    assert resp.status_code == 201


async def test_negative_prices_are_rejected(client, owner):
    resp = await client.post(
        "/api/v1/products", json={"sku": "BAD", "name": "Bad", "price_cost": -1}, headers=owner["headers"]
    )
    assert resp.status_code == 422
    assert resp.json()["error"]["type"] == "validation_error"


async def test_unknown_supplier_is_rejected(client, owner):
    resp = await client.post(
        "/api/v1/products", json={"sku": "S", "name": "S", "supplier_id": 42}, headers=owner["headers"]
    )
    assert resp.status_code == 404


async def test_list_filters_by_stock_status_and_search(client, owner, make_product):
    await make_product("LOW-1", name="Low Item", min_stock=5, current_stock=2)
    await make_product("OUT-1", name="Gone Item", min_stock=0, current_stock=0)
    await make_product("OK-1", name="Plenty", min_stock=1, current_stock=9)

    async def skus(**params):
        resp = await client.get("/api/v1/products", params=params, headers=owner["headers"])
        assert resp.status_code == 200
        return sorted(p["sku"] for p in resp.json()["data"])

    assert await skus() == ["LOW-1", "OK-1", "OUT-1"]
    assert await skus(stock_status="low_stock") == ["LOW-1"]
    assert await skus(stock_status="out_of_stock") == ["OUT-1"]
    assert await skus(stock_status="in_stock") == ["OK-1"]
    assert await skus(search="item") == ["LOW-1", "OUT-1"]
    assert await skus(search="ok-") == ["OK-1"]


async def test_page_limit_is_clamped(client, owner, make_product):
    await make_product("P-1")
    resp = await client.get("/api/v1/products", params={"limit": 500}, headers=owner["headers"])
    assert resp.json()["meta"]["limit"] == 100


async def test_low_stock_endpoint_orders_by_stock(client, owner, make_product):
    await make_product("A", min_stock=10, current_stock=7)
    await make_product("B", min_stock=10, current_stock=1)
    await make_product("C", min_stock=1, current_stock=5)
    resp = await client.get("/api/v1/products/low-stock", headers=owner["headers"])
    assert [p["sku"] for p in resp.json()] == ["B", "A"]


async def test_get_by_id_and_sku_are_tenant_scoped(client, owner, make_product):
    product = await make_product("ONLY-MINE")
    assert (await client.get(f"/api/v1/products/{product['id']}", headers=owner["headers"])).status_code == 200
    assert (await client.get("/api/v1/products/sku/ONLY-MINE", headers=owner["headers"])).status_code == 200

    other = bearer((await register(client, business="Nosy", email="n@nosy.com"))["access_token"])
    assert (await client.get(f"/api/v1/products/{product['id']}", headers=other)).status_code == 404
    assert (await client.get("/api/v1/products/sku/ONLY-MINE", headers=other)).status_code == 404


async def test_update_product_and_sku_conflict(client, owner, make_product):
    first = await make_product("FIRST")
    await make_product("SECOND")

    resp = await client.patch(
        f"/api/v1/products/{first['id']}", json={"name": "Renamed", "price_sale": 12.5}, headers=owner["headers"]
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "Renamed"
    assert resp.json()["price_sale"] == 12.5

    clash = await client.patch(f"/api/v1/products/{first['id']}", json={"sku": "SECOND"}, headers=owner["headers"])
    assert clash.status_code == 409


async def test_delete_product(client, owner, make_product):
    product = await make_product("DOOMED")
    assert (await client.delete(f"/api/v1/products/{product['id']}", headers=owner["headers"])).status_code == 200
    assert (await client.get(f"/api/v1/products/{product['id']}", headers=owner["headers"])).status_code == 404


async def test_product_on_an_order_cannot_be_deleted(client, owner, make_product):
    product = await make_product("SOLD", current_stock=5)
    order = await client.post(
        "/api/v1/orders", json={"items": [{"product_id": product["id"], "quantity": 1}]}, headers=owner["headers"]
    )
    assert order.status_code == 201

    resp = await client.delete(f"/api/v1/products/{product['id']}", headers=owner["headers"])
    assert resp.status_code == 409
    assert resp.json()["error"]["type"] == "conflict"
