import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from starlette.websockets import WebSocketDisconnect, WebSocketState

from inventory_api.api.main import WS_UNAUTHORIZED, app
from inventory_api.core.security import create_refresh_token
from inventory_api.db.base import Base
from inventory_api.db.session import enable_sqlite_foreign_keys, get_async_session, make_session_maker
from inventory_api.schemas.realtime import StockChangedEvent
from inventory_api.services.realtime import BroadcastManager, broadcast_manager
from tests.conftest import PASSWORD


class FakeSocket:
    def __init__(self, fail: bool = False):
        self.application_state = WebSocketState.CONNECTED
        self.client_state = WebSocketState.CONNECTED
        self.fail = fail
        self.sent = []

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


async def test_broadcast_reaches_topic_subscribers_only():
    manager = BroadcastManager()
    mine, theirs = FakeSocket(), FakeSocket()
    await manager.connect(manager.dashboard_topic(1), mine)
    await manager.connect(manager.dashboard_topic(2), theirs)

    await manager.broadcast("dashboard:1", {"type": "hello"})

    assert mine.sent == [{"type": "hello"}]
    assert theirs.sent == []


async def test_broadcast_drops_broken_and_closed_sockets():
    manager = BroadcastManager()
    broken, closed, healthy = FakeSocket(fail=True), FakeSocket(), FakeSocket()
    closed.client_state = WebSocketState.DISCONNECTED
    for ws in (broken, closed, healthy):
        await manager.connect("dashboard:1", ws)

    await manager.broadcast("dashboard:1", {"n": 1})

    assert manager.subscriber_count("dashboard:1") == 1
    assert healthy.sent == [{"n": 1}]


async def test_disconnect_and_exclude():
    manager = BroadcastManager()
    sender, listener = FakeSocket(), FakeSocket()
    await manager.connect("dashboard:1", sender)
    await manager.connect("dashboard:1", listener)

    await manager.broadcast("dashboard:1", {"n": 1}, exclude=sender)
    assert sender.sent == []
    assert listener.sent == [{"n": 1}]

    await manager.disconnect("dashboard:1", listener)
    await manager.disconnect("dashboard:unknown", listener)
    assert manager.subscriber_count("dashboard:1") == 1


async def test_publish_stock_changed_envelope():
    manager = BroadcastManager()
    ws = FakeSocket()
    await manager.connect("dashboard:7", ws)
    event = StockChangedEvent(product_id=3, sku="A", previous_stock=1, new_stock=4, low_stock=False, source="IN")

    await manager.publish_stock_changed(7, event, user_id=9)

    (message,) = ws.sent
    assert message["type"] == "inventory.stock_changed"
    assert message["payload"]["new_stock"] == 4
    assert message["user_id"] == 9
    assert isinstance(message["at"], str)


@pytest_asyncio.fixture
async def subscriber():
    """A fake socket subscribed to tenant dashboards through the shared manager."""
    ws = FakeSocket()
    topics = []

    async def _subscribe(tenant_id):
        topic = broadcast_manager.dashboard_topic(tenant_id)
        topics.append(topic)
        await broadcast_manager.connect(topic, ws)
        return ws

    yield _subscribe
    for topic in topics:
        await broadcast_manager.disconnect(topic, ws)


async def test_stock_movement_is_published(client, owner, make_product, subscriber):
    ws = await subscriber(owner["user"]["tenant_id"])
    product = await make_product("LIVE", current_stock=3, min_stock=5)

    await client.post("/api/v1/inventory/in", json={"product_id": product["id"], "quantity": 4}, headers=owner["headers"])

    (message,) = ws.sent
    assert message["type"] == "inventory.stock_changed"
    assert message["payload"] == {
        "product_id": product["id"],
        "sku": "LIVE",
        "previous_stock": 3,
        "new_stock": 7,
        "low_stock": False,
        "source": "IN",
    }


async def test_order_completion_publishes_stock_and_status(client, owner, make_product, subscriber):
    ws = await subscriber(owner["user"]["tenant_id"])
    product = await make_product("SOLD", current_stock=3)
    order = (
        await client.post(
            "/api/v1/orders", json={"items": [{"product_id": product["id"], "quantity": 2}]}, headers=owner["headers"]
        )
    ).json()

    await client.patch(f"/api/v1/orders/{order['id']}", json={"status": "COMPLETED"}, headers=owner["headers"])

    types = [m["type"] for m in ws.sent]
    assert types == ["inventory.stock_changed", "orders.status_changed"]
    assert ws.sent[0]["payload"]["source"] == "ORDER"
    assert ws.sent[1]["payload"]["previous_status"] == "PENDING"
    assert ws.sent[1]["payload"]["status"] == "COMPLETED"


@pytest.mark.parametrize("make_token", [lambda: "not-a-jwt", lambda: create_refresh_token("1", 1)[0]])
def test_ws_dashboard_rejects_invalid_tokens(make_token):
    async def no_session():
        yield None

    app.dependency_overrides[get_async_session] = no_session
    try:
        client = TestClient(app)
        with client.websocket_connect(f"/ws/dashboard?token={make_token()}") as ws:
            with pytest.raises(WebSocketDisconnect) as exc:
                ws.receive_text()
        assert exc.value.code == WS_UNAUTHORIZED
    finally:
        app.dependency_overrides.clear()


def test_ws_dashboard_sends_summary_and_answers_ping(tmp_path):
    path = tmp_path / "dashboard.db"
    setup_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(setup_engine)
    setup_engine.dispose()

    # The test client runs the app on its own event loop; open connections there.
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    enable_sqlite_foreign_keys(engine)
    maker = make_session_maker(engine)

    async def file_session():
        async with maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = file_session
    try:
        client = TestClient(app)
        resp = client.post(
            "/api/v1/auth/register",
            json={"business_name": "Live Shop", "full_name": "Owner", "email": "live@shop.com", "password": PASSWORD},
        )
        assert resp.status_code == 201, resp.text
        token = resp.json()["access_token"]

        with client.websocket_connect(f"/ws/dashboard?token={token}") as ws:
            first = ws.receive_json()
            assert first["type"] == "dashboard.summary"
            assert first["payload"]["products"]["total"] == 0

            ws.send_text("ping")
            assert ws.receive_text() == "pong"
    finally:
        app.dependency_overrides.clear()
