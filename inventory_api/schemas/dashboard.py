from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from inventory_api.schemas.common import PageMeta
from inventory_api.schemas.inventory import TransactionRead


class ProductCounts(BaseModel):
    total: int = Field(0)
    low_stock: int = Field(0)


class TransactionCounts(BaseModel):
    total: int = Field(0)


class InventoryValue(BaseModel):
    total_units: int = Field(0)
    value_cost: float = Field(0, description="Stock valued at cost")
    value_sale: float = Field(0, description="Stock valued at sale price")
    potential_profit: float = Field(0, description="value_sale - value_cost")


class DashboardSummary(BaseModel):
    products: ProductCounts
    transactions: TransactionCounts
    inventory: InventoryValue
    recent_transactions: List[TransactionRead] = Field(default_factory=list)


class LowStockRow(BaseModel):
    id: int = Field(...)
    sku: str = Field(...)
    name: str = Field(...)
    current_stock: int = Field(...)
    min_stock: int = Field(...)
    deficit: int = Field(..., description="min_stock - current_stock")


class LowStockPage(BaseModel):
    data: List[LowStockRow] = Field(default_factory=list)
    meta: PageMeta
    alert: Optional[str] = Field(None, description="Human readable alert when any product is low")


class ProductValueRow(BaseModel):
    id: int = Field(...)
    sku: str = Field(...)
    name: str = Field(...)
    current_stock: int = Field(...)
    price_cost: float = Field(...)
    price_sale: float = Field(...)
    value_cost: float = Field(...)
    value_sale: float = Field(...)


class InventoryValueReport(BaseModel):
    products: List[ProductValueRow] = Field(default_factory=list)
    totals: InventoryValue


class MovementTotals(BaseModel):
    count: int = Field(0)
    total_quantity: int = Field(0)


class TransactionsReport(BaseModel):
    transactions: List[TransactionRead] = Field(default_factory=list)
    summary: Dict[str, MovementTotals] = Field(default_factory=dict, description="Keyed by IN, OUT, ADJUSTMENT")
    total_transactions: int = Field(0)


class TopProductRow(BaseModel):
    id: int = Field(...)
    sku: str = Field(...)
    name: str = Field(...)
    current_stock: int = Field(...)
    transactions_count: int = Field(...)
