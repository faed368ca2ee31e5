from tests.conftest import PASSWORD, bearer, login, register


async def test_register_creates_tenant_and_admin(client):
    data = await register(client, business="Corner Shop", email="ana@corner.com")
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "ADMIN"
    assert data["user"]["email"] == "ana@corner.com"

    me = await client.get("/api/v1/auth/me", headers=bearer(data["access_token"]))
    assert me.status_code == 200
    assert me.json()["tenant_id"] == data["user"]["tenant_id"]


async def test_register_duplicate_email_conflicts(client):
    await register(client, business="One", email="dup@shop.com")
    resp = await client.post(
        "/api/v1/auth/register",
        json={"business_name": "Two", "full_name": "X", "email": "dup@shop.com", "password": PASSWORD},
    )
    assert resp.status_code == 409
    assert resp.json()["error"]["type"] == "http_error"


async def test_login_rejects_bad_password(client):
    await register(client, email="bob@shop.com")
    resp = await client.post("/api/v1/auth/login", json={"email": "bob@shop.com", "password": "wrong-one"})
    assert resp.status_code == 401


async def test_me_requires_token(client):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401


async def test_refresh_token_cannot_be_used_as_access_token(client):
    data = await register(client)
    resp = await client.get("/api/v1/auth/me", headers=bearer(data["refresh_token"]))
    assert resp.status_code == 401


async def test_refresh_rotates_tokens(client):
    data = await register(client)
    resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": data["refresh_token"]})
    assert resp.status_code == 200
    rotated = resp.json()
    assert rotated["refresh_token"] != data["refresh_token"]

    me = await client.get("/api/v1/auth/me", headers=bearer(rotated["access_token"]))
    assert me.status_code == 200


async def test_reusing_rotated_refresh_token_revokes_all_sessions(client):
    data = await register(client)
    first = data["refresh_token"]
    rotated = (await client.post("/api/v1/auth/refresh", json={"refresh_token": first})).json()

    reuse = await client.post("/api/v1/auth/refresh", json={"refresh_token": first})
    assert reuse.status_code == 401

    # The legitimate successor was revoked along with everything else.
    after = await client.post("/api/v1/auth/refresh", json={"refresh_token": rotated["refresh_token"]})
    assert after.status_code == 401


async def test_logout_revokes_given_refresh_token(client):
    data = await register(client, email="carl@shop.com")
    other = await login(client, "carl@shop.com")

    resp = await client.post(
        "/api/v1/auth/logout",
        json={"refresh_token": data["refresh_token"]},
        headers=bearer(data["access_token"]),
    )
    assert resp.status_code == 200

    assert (await client.post("/api/v1/auth/refresh", json={"refresh_token": data["refresh_token"]})).status_code == 401
    assert (await client.post("/api/v1/auth/refresh", json={"refresh_token": other["refresh_token"]})).status_code == 200


async def test_logout_without_token_revokes_every_session(client):
    data = await register(client, email="dina@shop.com")
    other = await login(client, "dina@shop.com")

    resp = await client.post("/api/v1/auth/logout", headers=bearer(data["access_token"]))
    assert resp.status_code == 200

    for token in (data["refresh_token"], other["refresh_token"]):
        assert (await client.post("/api/v1/auth/refresh", json={"refresh_token": token})).status_code == 401


async def test_inactive_tenant_cannot_login(client):
    data = await register(client, business="Dormant", email="eve@dormant.com")
    admin = await register(client, business="Platform", email="root@platform.com")
    resp = await client.patch(
        f"/api/v1/tenants/{data['user']['tenant_id']}",
        json={"is_active": False},
        headers=bearer(admin["access_token"]),
    )
    assert resp.status_code == 200

    resp = await client.post("/api/v1/auth/login", json={"email": "eve@dormant.com", "password": PASSWORD})
    assert resp.status_code == 403
