from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, DefaultDict, Dict, List, Optional, Set

from starlette.websockets import WebSocket, WebSocketState

from inventory_api.schemas.realtime import OrderStatusChangedEvent, StockChangedEvent, WsEnvelope

logger = logging.getLogger(__name__)


def _is_open(ws: WebSocket) -> bool:
    return WebSocketState.DISCONNECTED not in (ws.application_state, ws.client_state)


class BroadcastManager:
    """
    In-process fan-out of dashboard events to the websockets of one tenant.

    Each tenant has a single topic, ``dashboard:{tenant_id}``. Events only
    reach subscribers of the same worker process.
    """

    def __init__(self) -> None:
        self._subscribers: DefaultDict[str, Set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    # PUBLIC_INTERFACE
    @staticmethod
    def dashboard_topic(tenant_id: int | str) -> str:
        return f"dashboard:{tenant_id}"

    # PUBLIC_INTERFACE
    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))

    # PUBLIC_INTERFACE
    async def connect(self, topic: str, websocket: WebSocket) -> None:
        """Subscribe an already accepted websocket."""
        async with self._lock:
            self._subscribers[topic].add(websocket)
            count = len(self._subscribers[topic])
        logger.info("Dashboard subscriber joined topic=%s (now %d)", topic, count)

    # PUBLIC_INTERFACE
    async def disconnect(self, topic: str, websocket: WebSocket) -> None:
        async with self._lock:
            subscribers = self._subscribers.get(topic)
            if subscribers is None:
                return
            subscribers.discard(websocket)
            count = len(subscribers)
            if not subscribers:
                del self._subscribers[topic]
        logger.info("Dashboard subscriber left topic=%s (now %d)", topic, count)

    # PUBLIC_INTERFACE
    async def broadcast(self, topic: str, message: Dict[str, Any], exclude: Optional[WebSocket] = None) -> None:
        """
        Send `message` as JSON to every subscriber of `topic` except `exclude`.

        Closed sockets and sockets whose send fails are unsubscribed.
        """
        async with self._lock:
            targets = [ws for ws in self._subscribers.get(topic, ()) if ws is not exclude]
        if not targets:
            return

        stale: List[WebSocket] = []
        for ws in targets:
            if not _is_open(ws):
                stale.append(ws)
                continue
            try:
                await ws.send_json(message)
            except Exception:
                logger.exception("Dropping dashboard subscriber after failed send on topic=%s", topic)
                stale.append(ws)

        if stale:
            async with self._lock:
                remaining = self._subscribers.get(topic)
                if remaining is not None:
                    remaining.difference_update(stale)

    async def _publish(self, tenant_id: int, event_type: str, payload: Dict[str, Any], user_id: Optional[int]) -> None:
        env = WsEnvelope(type=event_type, payload=payload, user_id=user_id)
        await self.broadcast(self.dashboard_topic(tenant_id), env.model_dump(mode="json"))

    # PUBLIC_INTERFACE
    async def publish_stock_changed(
        self, tenant_id: int, event: StockChangedEvent, user_id: Optional[int] = None
    ) -> None:
        await self._publish(tenant_id, "inventory.stock_changed", event.model_dump(), user_id)

    # PUBLIC_INTERFACE
    async def publish_order_status(
        self, tenant_id: int, event: OrderStatusChangedEvent, user_id: Optional[int] = None
    ) -> None:
        await self._publish(tenant_id, "orders.status_changed", event.model_dump(), user_id)


# Shared by the websocket endpoint and the services that publish events.
broadcast_manager = BroadcastManager()
