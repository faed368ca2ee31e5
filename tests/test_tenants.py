from tests.conftest import bearer, register


async def test_admin_renames_own_tenant(client, owner):
    resp = await client.patch("/api/v1/tenants/settings", json={"name": "Acme Retail"}, headers=owner["headers"])
    assert resp.status_code == 200
    assert resp.json()["name"] == "Acme Retail"


async def test_settings_rename_conflicts_with_existing_name(client, owner):
    await register(client, business="Taken Name", email="x@taken.com")
    resp = await client.patch("/api/v1/tenants/settings", json={"name": "Taken Name"}, headers=owner["headers"])
    assert resp.status_code == 409


async def test_employee_cannot_manage_tenants(client, make_user):
    employee = await make_user("worker@acme.com")
    assert (await client.get("/api/v1/tenants", headers=employee["headers"])).status_code == 403
    assert (
        await client.patch("/api/v1/tenants/settings", json={"name": "Nope"}, headers=employee["headers"])
    ).status_code == 403


async def test_create_and_list_tenants(client, owner):
    resp = await client.post("/api/v1/tenants", json={"name": "Branch"}, headers=owner["headers"])
    assert resp.status_code == 201
    assert resp.json()["plan_type"] == "FREE"

    dup = await client.post("/api/v1/tenants", json={"name": "Branch"}, headers=owner["headers"])
    assert dup.status_code == 409

    listing = await client.get("/api/v1/tenants", params={"limit": 1}, headers=owner["headers"])
    body = listing.json()
    assert body["meta"]["total"] == 2
    assert body["meta"]["has_next_page"] is True
    assert len(body["data"]) == 1


async def test_tenant_detail_and_stats_counts(client, owner, make_product):
    await make_product("A-1")
    tenant_id = owner["user"]["tenant_id"]

    detail = (await client.get(f"/api/v1/tenants/{tenant_id}", headers=owner["headers"])).json()
    assert detail["users_count"] == 1
    assert detail["products_count"] == 1

    stats = (await client.get(f"/api/v1/tenants/{tenant_id}/stats", headers=owner["headers"])).json()
    assert stats["stats"] == {"users_count": 1, "products_count": 1}


async def test_non_admin_cannot_read_other_tenant(client, make_user):
    employee = await make_user("clerk@acme.com")
    other = await register(client, business="Elsewhere", email="z@elsewhere.com")
    resp = await client.get(f"/api/v1/tenants/{other['user']['tenant_id']}", headers=employee["headers"])
    assert resp.status_code == 403

    own = await client.get(f"/api/v1/tenants/{employee['user']['tenant_id']}", headers=employee["headers"])
    assert own.status_code == 200


async def test_delete_tenant_cascades(client, owner):
    other = await register(client, business="Closing Down", email="bye@closing.com")
    await client.post(
        "/api/v1/products",
        json={"sku": "X", "name": "X"},
        headers=bearer(other["access_token"]),
    )
    tenant_id = other["user"]["tenant_id"]

    resp = await client.delete(f"/api/v1/tenants/{tenant_id}", headers=owner["headers"])
    assert resp.status_code == 200
    assert (await client.get(f"/api/v1/tenants/{tenant_id}", headers=owner["headers"])).status_code == 404
    # The deleted tenant's users are gone too.
    assert (await client.get("/api/v1/auth/me", headers=bearer(other["access_token"]))).status_code == 401
