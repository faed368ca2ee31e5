from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

StockStatus = Literal["all", "low_stock", "out_of_stock", "in_stock"]


class SupplierRef(BaseModel):
    """Supplier summary embedded in product responses."""
    id: int = Field(...)
    name: str = Field(...)

    class Config:
        from_attributes = True


class ProductBase(BaseModel):
    sku: str = Field(..., min_length=1, description="Stock keeping unit, unique per tenant")
    name: str = Field(..., min_length=1, description="Product name")
    description: Optional[str] = Field(None)
    price_cost: float = Field(0, ge=0, description="Unit cost")
    price_sale: float = Field(0, ge=0, description="Unit sale price")
    min_stock: int = Field(0, ge=0, description="Reorder threshold")
    supplier_id: Optional[int] = Field(None, description="Supplier of this product")


class ProductCreate(ProductBase):
    current_stock: int = Field(0, ge=0, description="Initial stock on hand")


class ProductUpdate(BaseModel):
    """Partial update. Stock levels change through inventory movements, except for corrections here."""
    sku: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None)
    price_cost: Optional[float] = Field(None, ge=0)
    price_sale: Optional[float] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    current_stock: Optional[int] = Field(None, ge=0)
    supplier_id: Optional[int] = Field(None)


class ProductRead(BaseModel):
    """Product read model."""
    id: int = Field(...)
    tenant_id: int = Field(...)
    sku: str = Field(...)
    name: str = Field(...)
    description: Optional[str] = Field(None)
    price_cost: float = Field(...)
    price_sale: float = Field(...)
    min_stock: int = Field(...)
    current_stock: int = Field(...)
    supplier_id: Optional[int] = Field(None)
    supplier: Optional[SupplierRef] = Field(None)
    created_at: datetime = Field(...)
    updated_at: datetime = Field(...)

    class Config:
        from_attributes = True
