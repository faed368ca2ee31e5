import pytest
from fastapi import HTTPException

from inventory_api.db.models.inventory import TransactionType
from inventory_api.services.inventory import apply_movement
from tests.conftest import bearer, register


def test_apply_movement_rules():
    assert apply_movement(5, TransactionType.IN, 3) == 8
    assert apply_movement(5, TransactionType.OUT, 5) == 0
    assert apply_movement(5, TransactionType.ADJUSTMENT, 0) == 0
    assert apply_movement(5, TransactionType.ADJUSTMENT, 42) == 42


def test_apply_movement_refuses_negative_stock():
    with pytest.raises(HTTPException) as exc:
        apply_movement(2, TransactionType.OUT, 3)
    assert exc.value.status_code == 400
    assert exc.value.detail == "Insufficient stock. Current stock: 2, requested: 3"


async def test_stock_in_and_out_update_product_and_ledger(client, owner, make_product):
    product = await make_product("BOLT", current_stock=10)

    resp = await client.post(
        "/api/v1/inventory/in", json={"product_id": product["id"], "quantity": 5}, headers=owner["headers"]
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["previous_stock"] == 10
    assert body["new_stock"] == 15
    assert body["product"]["current_stock"] == 15
    assert body["transaction"]["type"] == "IN"
    assert body["transaction"]["reason"] == "Stock entry"
    assert body["transaction"]["user"]["email"] == "owner@acme.com"

    resp = await client.post(
        "/api/v1/inventory/out",
        json={"product_id": product["id"], "quantity": 4, "reason": "Sold at counter"},
        headers=owner["headers"],
    )
    assert resp.json()["new_stock"] == 11
    assert resp.json()["transaction"]["reason"] == "Sold at counter"


async def test_out_beyond_stock_is_rejected_without_side_effects(client, owner, make_product):
    product = await make_product("NUT", current_stock=2)
    resp = await client.post(
        "/api/v1/inventory/out", json={"product_id": product["id"], "quantity": 3}, headers=owner["headers"]
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Insufficient stock. Current stock: 2, requested: 3"

    after = (await client.get(f"/api/v1/products/{product['id']}", headers=owner["headers"])).json()
    assert after["current_stock"] == 2
    ledger = (await client.get("/api/v1/inventory/transactions", headers=owner["headers"])).json()
    assert ledger["meta"]["total"] == 0


async def test_adjustment_sets_absolute_value(client, owner, make_product):
    product = await make_product("WASHER", current_stock=7)
    resp = await client.post(
        "/api/v1/inventory/adjustment", json={"product_id": product["id"], "quantity": 0}, headers=owner["headers"]
    )
    assert resp.status_code == 201
    assert resp.json()["new_stock"] == 0
    assert resp.json()["transaction"]["reason"] == "Manual adjustment"


async def test_zero_quantity_only_allowed_for_adjustments(client, owner, make_product):
    product = await make_product("PIN", current_stock=1)
    resp = await client.post(
        "/api/v1/inventory/in", json={"product_id": product["id"], "quantity": 0}, headers=owner["headers"]
    )
    assert resp.status_code == 422

    resp = await client.post(
        "/api/v1/inventory/transaction",
        json={"product_id": product["id"], "type": "OUT", "quantity": 0},
        headers=owner["headers"],
    )
    assert resp.status_code == 422


async def test_generic_transaction_with_supplier(client, owner, make_product):
    supplier = (await client.post("/api/v1/suppliers", json={"name": "Bolts Inc"}, headers=owner["headers"])).json()
    product = await make_product("SCREW")
    resp = await client.post(
        "/api/v1/inventory/transaction",
        json={"product_id": product["id"], "type": "IN", "quantity": 20, "supplier_id": supplier["id"]},
        headers=owner["headers"],
    )
    assert resp.status_code == 201
    assert resp.json()["transaction"]["supplier"]["name"] == "Bolts Inc"


async def test_movements_on_foreign_products_are_not_found(client, make_product):
    product = await make_product("PRIVATE", current_stock=3)
    other = await register(client, business="Intruder", email="i@intruder.com")
    resp = await client.post(
        "/api/v1/inventory/out",
        json={"product_id": product["id"], "quantity": 1},
        headers=bearer(other["access_token"]),
    )
    assert resp.status_code == 404


async def test_transaction_listing_and_history(client, owner, make_product):
    first = await make_product("ONE", current_stock=5)
    second = await make_product("TWO", current_stock=5)
    for payload, kind in (
        ({"product_id": first["id"], "quantity": 1}, "in"),
        ({"product_id": first["id"], "quantity": 2}, "out"),
        ({"product_id": second["id"], "quantity": 3}, "in"),
    ):
        await client.post(f"/api/v1/inventory/{kind}", json=payload, headers=owner["headers"])

    all_rows = (await client.get("/api/v1/inventory/transactions", headers=owner["headers"])).json()
    assert all_rows["meta"]["total"] == 3
    assert all_rows["data"][0]["product"]["sku"] == "TWO"

    only_in = (
        await client.get("/api/v1/inventory/transactions", params={"type": "IN"}, headers=owner["headers"])
    ).json()
    assert only_in["meta"]["total"] == 2

    history = (
        await client.get(f"/api/v1/inventory/transactions/product/{first['id']}", headers=owner["headers"])
    ).json()
    assert [t["type"] for t in history["data"]] == ["OUT", "IN"]

    missing = await client.get("/api/v1/inventory/transactions/product/999", headers=owner["headers"])
    assert missing.status_code == 404


async def test_inventory_summary(client, owner, make_product):
    await make_product("S1", current_stock=3, min_stock=5)
    product = await make_product("S2", current_stock=10)
    await client.post(
        "/api/v1/inventory/in", json={"product_id": product["id"], "quantity": 2}, headers=owner["headers"]
    )

    summary = (await client.get("/api/v1/inventory/summary", headers=owner["headers"])).json()
    assert summary == {"total_products": 2, "total_transactions": 1, "low_stock_count": 1, "total_units": 15}
