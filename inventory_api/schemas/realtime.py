from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class WsEnvelope(BaseModel):
    """Envelope for WebSocket messages."""
    type: str = Field(..., description="Message type (e.g., 'dashboard.summary', 'inventory.stock_changed').")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Message payload.")
    at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Timestamp (UTC).")
    user_id: Optional[int] = Field(default=None, description="User whose action caused the event, if any.")


class StockChangedEvent(BaseModel):
    """Published after every stock movement."""
    product_id: int = Field(...)
    sku: str = Field(...)
    previous_stock: int = Field(...)
    new_stock: int = Field(...)
    low_stock: bool = Field(..., description="current_stock < min_stock after the movement")
    source: str = Field(..., description="IN, OUT, ADJUSTMENT or ORDER")


class OrderStatusChangedEvent(BaseModel):
    """Published when an order changes status."""
    order_id: int = Field(...)
    order_number: str = Field(...)
    previous_status: str = Field(...)
    status: str = Field(...)
