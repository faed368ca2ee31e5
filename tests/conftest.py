import os
import tempfile
from typing import AsyncGenerator, Dict

# Settings are read when the app module is imported; configure the test
# environment before that happens.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RUN_MIGRATIONS_ON_STARTUP"] = "false"
os.environ["AUTO_SEED"] = "false"
os.environ["UPLOADS_DIR"] = tempfile.mkdtemp(prefix="inventory-api-uploads-")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from inventory_api.api.main import app  # noqa: E402
from inventory_api.db.base import Base  # noqa: E402
from inventory_api.db.session import enable_sqlite_foreign_keys, get_async_session, make_session_maker  # noqa: E402
from inventory_api.repositories.security import RoleRepository  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
PASSWORD = "secret-password"


@pytest_asyncio.fixture
async def test_engine():
    """A fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    return make_session_maker(test_engine)


@pytest_asyncio.fixture
async def file_session_maker(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Sessions on a SQLite file, for tests that need separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'inventory.db'}")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield make_session_maker(engine)

    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """A session for arranging and inspecting data directly."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the test database injected."""

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def roles(session) -> Dict[str, int]:
    """Platform roles by name."""
    repo = RoleRepository(session)
    ids = {}
    for name in ("ADMIN", "MANAGER", "EMPLOYEE"):
        ids[name] = (await repo.ensure(name)).id
    await repo.commit()
    return ids


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def register(client: AsyncClient, business: str = "Acme Store", email: str = "owner@acme.com") -> dict:
    resp = await client.post(
        "/api/v1/auth/register",
        json={"business_name": business, "full_name": "Owner", "email": email, "password": PASSWORD},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def login(client: AsyncClient, email: str, password: str = PASSWORD) -> dict:
    resp = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()


@pytest_asyncio.fixture
async def owner(client) -> dict:
    """Registered ADMIN of 'Acme Store' with auth headers."""
    data = await register(client)
    data["headers"] = bearer(data["access_token"])
    return data


@pytest_asyncio.fixture
async def make_user(client, owner, roles):
    """Create a user with the given role in the owner's tenant and sign them in."""

    async def _make(email: str, role: str = "EMPLOYEE") -> dict:
        resp = await client.post(
            "/api/v1/users",
            json={"email": email, "password": PASSWORD, "full_name": email.split("@")[0], "role_id": roles[role]},
            headers=owner["headers"],
        )
        assert resp.status_code == 201, resp.text
        tokens = await login(client, email)
        return {"user": resp.json(), "headers": bearer(tokens["access_token"]), **tokens}

    return _make


@pytest_asyncio.fixture
async def make_product(client, owner):
    """Create a product in the owner's tenant."""

    async def _make(sku: str = "SKU-1", headers: Dict[str, str] | None = None, **fields) -> dict:
        body = {
            "sku": sku,
            "name": fields.pop("name", f"Product {sku}"),
            "price_cost": 5.0,
            "price_sale": 10.0,
            "min_stock": 0,
            "current_stock": 0,
        }
        body.update(fields)
        resp = await client.post("/api/v1/products", json=body, headers=headers or owner["headers"])
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make
