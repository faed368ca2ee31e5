from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func, or_, select

from inventory_api.db.models.master_data import Product
from .base import BaseRepository


class ProductRepository(BaseRepository):
    """Repository for products. Every query is scoped to one tenant."""

    async def get(self, tenant_id: int, product_id: int, *, for_update: bool = False) -> Optional[Product]:
        stmt = select(Product).where(Product.id == product_id, Product.tenant_id == tenant_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return await self.scalar_one_or_none(stmt)

    async def get_many(
        self, tenant_id: int, product_ids: Iterable[int], *, for_update: bool = False
    ) -> List[Product]:
        ids = sorted(set(product_ids))
        if not ids:
            return []
        # Lock in id order so concurrent stock movements cannot deadlock.
        stmt = (
            select(Product)
            .where(Product.tenant_id == tenant_id, Product.id.in_(ids))
            .order_by(Product.id)
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return list(await self.scalars(stmt))

    async def get_by_sku(self, tenant_id: int, sku: str) -> Optional[Product]:
        stmt = select(Product).where(Product.tenant_id == tenant_id, Product.sku == sku)
        return await self.scalar_one_or_none(stmt)

    async def list_page(
        self,
        tenant_id: int,
        *,
        search: Optional[str],
        stock_status: str,
        limit: int,
        offset: int,
    ) -> Tuple[List[Product], int]:
        stmt = select(Product).where(Product.tenant_id == tenant_id)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(func.lower(Product.name).like(pattern), func.lower(Product.sku).like(pattern))
            )
        if stock_status == "low_stock":
            stmt = stmt.where(Product.current_stock < Product.min_stock)
        elif stock_status == "out_of_stock":
            stmt = stmt.where(Product.current_stock == 0)
        elif stock_status == "in_stock":
            stmt = stmt.where(Product.current_stock > 0, Product.current_stock >= Product.min_stock)
        total = await self.count(stmt)
        stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc()).offset(offset).limit(limit)
        return list(await self.scalars(stmt)), total

    def _low_stock_stmt(self, tenant_id: int):
        return select(Product).where(
            Product.tenant_id == tenant_id, Product.current_stock < Product.min_stock
        )

    async def list_low_stock(self, tenant_id: int, *, limit: Optional[int] = None) -> List[Product]:
        stmt = self._low_stock_stmt(tenant_id).order_by(Product.current_stock.asc(), Product.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(await self.scalars(stmt))

    async def list_low_stock_by_deficit(
        self, tenant_id: int, *, limit: int, offset: int
    ) -> Tuple[List[Product], int]:
        stmt = self._low_stock_stmt(tenant_id)
        total = await self.count(stmt)
        deficit = Product.min_stock - Product.current_stock
        stmt = stmt.order_by(deficit.desc(), Product.id).offset(offset).limit(limit)
        return list(await self.scalars(stmt)), total

    async def count_low_stock(self, tenant_id: int) -> int:
        return await self.count(self._low_stock_stmt(tenant_id))

    async def list_all(self, tenant_id: int) -> List[Product]:
        stmt = select(Product).where(Product.tenant_id == tenant_id).order_by(Product.name, Product.id)
        return list(await self.scalars(stmt))

    async def stock_totals(self, tenant_id: int) -> Tuple[int, int]:
        """Return (product count, total units on hand)."""
        stmt = select(func.count(Product.id), func.coalesce(func.sum(Product.current_stock), 0)).where(
            Product.tenant_id == tenant_id
        )
        count, units = (await self.execute(stmt)).one()
        return int(count), int(units)
