from __future__ import annotations

from datetime import date as date_type, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from inventory_api.db.models.analytics import ReportType

ReportFormat = Literal["pdf", "csv", "xlsx"]


class SalesPoint(BaseModel):
    """Sales aggregated for one calendar day."""
    date: date_type = Field(...)
    order_count: int = Field(0)
    total_sales: float = Field(0)
    profit: float = Field(0, description="Order totals minus product cost of the sold units")


class TopSellingProduct(BaseModel):
    product_name: str = Field(...)
    sku: str = Field(...)
    quantity_sold: int = Field(0)
    revenue: float = Field(0)


class LowStockProduct(BaseModel):
    id: int = Field(...)
    sku: str = Field(...)
    name: str = Field(...)
    current_stock: int = Field(...)
    min_stock: int = Field(...)

    class Config:
        from_attributes = True


class Kpis(BaseModel):
    total_sales: float = Field(0)
    total_orders: int = Field(0)
    average_order_value: float = Field(0)
    low_stock_count: int = Field(0)
    total_customers: int = Field(0, description="Distinct users who placed orders in the window")


class ReportFile(BaseModel):
    url: str = Field(..., description="Public URL of the generated file")


class ReportRead(BaseModel):
    id: int = Field(...)
    type: ReportType = Field(...)
    format: str = Field(...)
    url: str = Field(...)
    user_id: Optional[int] = Field(None)
    created_at: datetime = Field(...)

    class Config:
        from_attributes = True
