from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from inventory_api.db.models.inventory import TransactionType
from inventory_api.schemas.master_data import ProductRead, SupplierRef


class StockMovementRequest(BaseModel):
    """Movement with its type implied by the endpoint (/in, /out, /adjustment)."""
    product_id: int = Field(..., description="Product to move")
    quantity: int = Field(..., ge=0, description="Units moved, or the new absolute level for adjustments")
    reason: Optional[str] = Field(None, description="Free text reason")
    supplier_id: Optional[int] = Field(None, description="Supplier delivering the goods (IN)")


class TransactionCreate(StockMovementRequest):
    type: TransactionType = Field(..., description="IN, OUT or ADJUSTMENT")

    @model_validator(mode="after")
    def _check_quantity(self) -> "TransactionCreate":
        if self.type != TransactionType.ADJUSTMENT and self.quantity < 1:
            raise ValueError("quantity must be at least 1 for IN and OUT movements")
        return self


class ProductRef(BaseModel):
    id: int = Field(...)
    sku: str = Field(...)
    name: str = Field(...)

    class Config:
        from_attributes = True


class UserRef(BaseModel):
    id: int = Field(...)
    email: str = Field(...)
    full_name: Optional[str] = Field(None)

    class Config:
        from_attributes = True


class TransactionRead(BaseModel):
    """Ledger row with product/user/supplier summaries."""
    id: int = Field(...)
    product_id: int = Field(...)
    user_id: Optional[int] = Field(None)
    supplier_id: Optional[int] = Field(None)
    type: TransactionType = Field(...)
    quantity: int = Field(...)
    reason: Optional[str] = Field(None)
    created_at: datetime = Field(...)
    product: Optional[ProductRef] = Field(None)
    user: Optional[UserRef] = Field(None)
    supplier: Optional[SupplierRef] = Field(None)

    class Config:
        from_attributes = True


class StockMovementResult(BaseModel):
    transaction: TransactionRead
    product: ProductRead
    previous_stock: int = Field(..., description="Stock before the movement")
    new_stock: int = Field(..., description="Stock after the movement")


class InventorySummary(BaseModel):
    total_products: int = Field(0)
    total_transactions: int = Field(0)
    low_stock_count: int = Field(0)
    total_units: int = Field(0)
