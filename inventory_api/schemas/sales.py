from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from inventory_api.db.models.sales import OrderStatus
from inventory_api.schemas.inventory import ProductRef, UserRef

OrderSort = Literal["newest", "oldest", "highest_total", "lowest_total"]


class OrderItemCreate(BaseModel):
    product_id: int = Field(..., description="Product ordered")
    quantity: int = Field(..., ge=1, description="Units ordered")


class OrderCreate(BaseModel):
    items: List[OrderItemCreate] = Field(..., min_length=1, description="Order lines")
    notes: Optional[str] = Field(None)


class OrderUpdate(BaseModel):
    status: Optional[OrderStatus] = Field(None, description="New status; moves stock on entering/leaving COMPLETED")
    notes: Optional[str] = Field(None)


class OrderItemRead(BaseModel):
    id: int = Field(...)
    product_id: int = Field(...)
    quantity: int = Field(...)
    unit_price: float = Field(...)
    subtotal: float = Field(...)
    product: Optional[ProductRef] = Field(None)

    class Config:
        from_attributes = True


class OrderRead(BaseModel):
    """Order with its lines."""
    id: int = Field(...)
    tenant_id: int = Field(...)
    user_id: int = Field(...)
    order_number: str = Field(...)
    status: OrderStatus = Field(...)
    total: float = Field(...)
    notes: Optional[str] = Field(None)
    created_at: datetime = Field(...)
    updated_at: datetime = Field(...)
    user: Optional[UserRef] = Field(None)
    items: List[OrderItemRead] = Field(default_factory=list)

    class Config:
        from_attributes = True


class PendingCount(BaseModel):
    count: int = Field(..., description="Number of PENDING orders")
