from tests.conftest import bearer, register


async def _supplier(client, headers, name, **fields):
    resp = await client.post("/api/v1/suppliers", json={"name": name, **fields}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_create_and_get_supplier_with_product_count(client, owner, make_product):
    supplier = await _supplier(client, owner["headers"], "Acme Parts", email="parts@acme-parts.com")
    await make_product("P-1", supplier_id=supplier["id"])
    await make_product("P-2", supplier_id=supplier["id"])

    resp = await client.get(f"/api/v1/suppliers/{supplier['id']}", headers=owner["headers"])
    assert resp.status_code == 200
    assert resp.json()["products_count"] == 2


async def test_list_search_sort_and_envelope(client, owner, make_product):
    zeta = await _supplier(client, owner["headers"], "Zeta Supply", contact_person="Zoe")
    await _supplier(client, owner["headers"], "Alpha Goods", email="hello@alpha.com")
    await make_product("Z-1", supplier_id=zeta["id"])

    resp = await client.get(
        "/api/v1/suppliers", params={"sort_by": "name", "sort_order": "asc"}, headers=owner["headers"]
    )
    body = resp.json()
    assert [s["name"] for s in body["data"]] == ["Alpha Goods", "Zeta Supply"]
    assert body["data"][1]["products_count"] == 1
    assert body["total"] == 2
    assert body["page"] == 1
    assert body["total_pages"] == 1

    by_contact = await client.get("/api/v1/suppliers", params={"search": "zoe"}, headers=owner["headers"])
    assert [s["name"] for s in by_contact.json()["data"]] == ["Zeta Supply"]
    by_email = await client.get("/api/v1/suppliers", params={"search": "ALPHA.COM"}, headers=owner["headers"])
    assert [s["name"] for s in by_email.json()["data"]] == ["Alpha Goods"]


async def test_invalid_sort_field_is_rejected(client, owner):
    resp = await client.get("/api/v1/suppliers", params={"sort_by": "password"}, headers=owner["headers"])
    assert resp.status_code == 422


async def test_foreign_supplier_is_forbidden(client, owner):
    supplier = await _supplier(client, owner["headers"], "Private Supplier")
    other = bearer((await register(client, business="Curious", email="c@curious.com"))["access_token"])
    assert (await client.get(f"/api/v1/suppliers/{supplier['id']}", headers=other)).status_code == 403
    assert (await client.get("/api/v1/suppliers/999", headers=other)).status_code == 404


async def test_update_supplier(client, owner):
    supplier = await _supplier(client, owner["headers"], "Old Name")
    resp = await client.patch(
        f"/api/v1/suppliers/{supplier['id']}", json={"name": "New Name", "phone": "555-0100"}, headers=owner["headers"]
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "New Name"
    assert resp.json()["phone"] == "555-0100"


async def test_delete_supplier_keeps_products(client, owner, make_product):
    supplier = await _supplier(client, owner["headers"], "Going Away")
    product = await make_product("KEEP", supplier_id=supplier["id"])

    assert (await client.delete(f"/api/v1/suppliers/{supplier['id']}", headers=owner["headers"])).status_code == 200

    after = await client.get(f"/api/v1/products/{product['id']}", headers=owner["headers"])
    assert after.status_code == 200
    assert after.json()["supplier_id"] is None


async def test_supplier_products_sorted_by_name(client, owner, make_product):
    supplier = await _supplier(client, owner["headers"], "Catalogue")
    await make_product("B", name="Bravo", supplier_id=supplier["id"])
    await make_product("A", name="Alpha", supplier_id=supplier["id"])
    await make_product("C", name="Charlie")

    resp = await client.get(f"/api/v1/suppliers/{supplier['id']}/products", headers=owner["headers"])
    assert [p["name"] for p in resp.json()] == ["Alpha", "Bravo"]
