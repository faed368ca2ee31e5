from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select

from inventory_api.db.models.master_data import Product
from inventory_api.db.models.sales import Order, OrderItem, OrderStatus
from inventory_api.db.models.security import User
from .base import BaseRepository

ORDER_SORTS = {
    "newest": (Order.created_at.desc(), Order.id.desc()),
    "oldest": (Order.created_at.asc(), Order.id.asc()),
    "highest_total": (Order.total.desc(), Order.id.desc()),
    "lowest_total": (Order.total.asc(), Order.id.asc()),
}


class OrderRepository(BaseRepository):
    """Repository for orders and their lines."""

    async def get(self, tenant_id: int, order_id: int, *, for_update: bool = False) -> Optional[Order]:
        stmt = select(Order).where(Order.id == order_id, Order.tenant_id == tenant_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return await self.scalar_one_or_none(stmt)

    async def number_exists(self, order_number: str) -> bool:
        stmt = select(Order.id).where(Order.order_number == order_number)
        return (await self.scalar_one_or_none(stmt)) is not None

    async def count_by_status(self, tenant_id: int, status: OrderStatus) -> int:
        stmt = select(Order).where(Order.tenant_id == tenant_id, Order.status == status)
        return await self.count(stmt)

    async def list_page(
        self,
        tenant_id: int,
        *,
        status: Optional[OrderStatus],
        search: Optional[str],
        sort: str,
        limit: int,
        offset: int,
    ) -> Tuple[List[Order], int]:
        stmt = select(Order).where(Order.tenant_id == tenant_id)
        if status is not None:
            stmt = stmt.where(Order.status == status)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.join(User, User.id == Order.user_id).where(
                or_(
                    func.lower(Order.order_number).like(pattern),
                    func.lower(User.full_name).like(pattern),
                )
            )
        total = await self.count(stmt)
        stmt = stmt.order_by(*ORDER_SORTS.get(sort, ORDER_SORTS["newest"])).offset(offset).limit(limit)
        return list(await self.scalars(stmt)), total

    def _sales_window(self, stmt, tenant_id: int, start: Optional[datetime], end: Optional[datetime]):
        stmt = stmt.where(Order.tenant_id == tenant_id, Order.status != OrderStatus.CANCELLED)
        if start is not None:
            stmt = stmt.where(Order.created_at >= start)
        if end is not None:
            stmt = stmt.where(Order.created_at <= end)
        return stmt

    async def list_sales(
        self, tenant_id: int, *, start: Optional[datetime], end: Optional[datetime]
    ) -> List[Order]:
        """Non-cancelled orders in the window, oldest first, with items and products loaded."""
        stmt = self._sales_window(select(Order), tenant_id, start, end).order_by(
            Order.created_at.asc(), Order.id.asc()
        )
        return list(await self.scalars(stmt))

    async def sales_totals(
        self, tenant_id: int, *, start: Optional[datetime], end: Optional[datetime]
    ) -> Tuple[Decimal, int, int]:
        """Return (sum of totals, order count, distinct ordering users)."""
        stmt = self._sales_window(
            select(
                func.coalesce(func.sum(Order.total), 0),
                func.count(Order.id),
                func.count(func.distinct(Order.user_id)),
            ),
            tenant_id,
            start,
            end,
        )
        total, orders, customers = (await self.execute(stmt)).one()
        return Decimal(str(total or 0)), int(orders), int(customers)

    async def top_selling_products(
        self,
        tenant_id: int,
        *,
        start: Optional[datetime],
        end: Optional[datetime],
        limit: int,
    ) -> List[Tuple[str, str, int, Decimal]]:
        """Return (product name, sku, quantity sold, revenue) ordered by revenue."""
        revenue = func.coalesce(func.sum(OrderItem.subtotal), 0).label("revenue")
        stmt = (
            select(Product.name, Product.sku, func.sum(OrderItem.quantity).label("quantity_sold"), revenue)
            .join(OrderItem, OrderItem.product_id == Product.id)
            .join(Order, Order.id == OrderItem.order_id)
            .group_by(Product.id, Product.name, Product.sku)
            .order_by(revenue.desc(), Product.id)
            .limit(limit)
        )
        stmt = self._sales_window(stmt, tenant_id, start, end)
        res = await self.execute(stmt)
        return [
            (name, sku, int(qty or 0), Decimal(str(rev or 0)))
            for name, sku, qty, rev in res.all()
        ]
