from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import PageParams, Principal
from inventory_api.db.models.inventory import TransactionType
from inventory_api.repositories.inventory import InventoryTransactionRepository
from inventory_api.repositories.master_data import ProductRepository
from inventory_api.schemas.common import PageMeta
from inventory_api.schemas.dashboard import (
    DashboardSummary,
    InventoryValue,
    InventoryValueReport,
    LowStockPage,
    LowStockRow,
    MovementTotals,
    ProductCounts,
    ProductValueRow,
    TopProductRow,
    TransactionCounts,
    TransactionsReport,
)
from inventory_api.schemas.inventory import TransactionRead
from inventory_api.services.base import BaseService

TOP_PRODUCTS_MAX = 50


def _money(value: Decimal) -> float:
    return float(round(value, 2))


# PUBLIC_INTERFACE
def day_bounds(start: Optional[date], end: Optional[date]) -> tuple[Optional[datetime], Optional[datetime]]:
    """UTC datetimes covering the calendar dates; the end date is inclusive."""
    lower = datetime.combine(start, time.min, tzinfo=timezone.utc) if start else None
    upper = datetime.combine(end, time.max, tzinfo=timezone.utc) if end else None
    return lower, upper


class DashboardService(BaseService):
    """Read-only inventory overview for the dashboard screens."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.products = ProductRepository(session)
        self.transactions = InventoryTransactionRepository(session)

    async def _valuation(self, tenant_id: int):
        products = await self.products.list_all(tenant_id)
        rows = []
        units = 0
        value_cost = Decimal("0")
        value_sale = Decimal("0")
        for p in products:
            cost = Decimal(p.price_cost) * p.current_stock
            sale = Decimal(p.price_sale) * p.current_stock
            units += p.current_stock
            value_cost += cost
            value_sale += sale
            rows.append(
                ProductValueRow(
                    id=p.id,
                    sku=p.sku,
                    name=p.name,
                    current_stock=p.current_stock,
                    price_cost=float(p.price_cost),
                    price_sale=float(p.price_sale),
                    value_cost=_money(cost),
                    value_sale=_money(sale),
                )
            )
        totals = InventoryValue(
            total_units=units,
            value_cost=_money(value_cost),
            value_sale=_money(value_sale),
            potential_profit=_money(value_sale - value_cost),
        )
        return rows, totals

    # PUBLIC_INTERFACE
    async def summary(self, principal: Principal) -> DashboardSummary:
        tenant_id = principal.tenant_id
        _, totals = await self._valuation(tenant_id)
        total_products, _ = await self.products.stock_totals(tenant_id)
        recent = await self.transactions.recent(tenant_id, limit=5)
        return DashboardSummary(
            products=ProductCounts(total=total_products, low_stock=await self.products.count_low_stock(tenant_id)),
            transactions=TransactionCounts(total=await self.transactions.count_for_tenant(tenant_id)),
            inventory=totals,
            recent_transactions=[TransactionRead.model_validate(t) for t in recent],
        )

    # PUBLIC_INTERFACE
    async def low_stock(self, principal: Principal, page: PageParams) -> LowStockPage:
        products, total = await self.products.list_low_stock_by_deficit(
            principal.tenant_id, limit=page.limit, offset=page.offset
        )
        return LowStockPage(
            data=[
                LowStockRow(
                    id=p.id,
                    sku=p.sku,
                    name=p.name,
                    current_stock=p.current_stock,
                    min_stock=p.min_stock,
                    deficit=p.min_stock - p.current_stock,
                )
                for p in products
            ],
            meta=PageMeta.build(total=total, page=page.page, limit=page.limit),
            alert=f"{total} product(s) with low stock" if total else None,
        )

    # PUBLIC_INTERFACE
    async def inventory_value(self, principal: Principal) -> InventoryValueReport:
        rows, totals = await self._valuation(principal.tenant_id)
        return InventoryValueReport(products=rows, totals=totals)

    # PUBLIC_INTERFACE
    async def transactions_report(
        self,
        principal: Principal,
        *,
        start_date: Optional[date],
        end_date: Optional[date],
        type: Optional[TransactionType],
    ) -> TransactionsReport:
        start, end = day_bounds(start_date, end_date)
        rows = await self.transactions.list_between(principal.tenant_id, start=start, end=end, type=type)
        summary = {t.value: MovementTotals() for t in TransactionType}
        for tx in rows:
            bucket = summary[tx.type.value]
            bucket.count += 1
            bucket.total_quantity += tx.quantity
        return TransactionsReport(
            transactions=[TransactionRead.model_validate(t) for t in rows],
            summary=summary,
            total_transactions=len(rows),
        )

    # PUBLIC_INTERFACE
    async def top_products(self, principal: Principal, limit: int) -> list[TopProductRow]:
        ranked = await self.transactions.top_products(principal.tenant_id, min(limit, TOP_PRODUCTS_MAX))
        return [
            TopProductRow(
                id=p.id, sku=p.sku, name=p.name, current_stock=p.current_stock, transactions_count=count
            )
            for p, count in ranked
        ]
