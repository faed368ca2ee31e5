from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select

from inventory_api.db.models.master_data import Product
from inventory_api.db.models.procurement import Supplier
from .base import BaseRepository

SUPPLIER_SORT_COLUMNS = {
    "name": Supplier.name,
    "email": Supplier.email,
    "contact_person": Supplier.contact_person,
    "created_at": Supplier.created_at,
}


class SupplierRepository(BaseRepository):
    """Repository for suppliers."""

    async def get(self, supplier_id: int) -> Optional[Supplier]:
        """Fetch by id regardless of tenant; callers decide between 404 and 403."""
        return await self.scalar_one_or_none(select(Supplier).where(Supplier.id == supplier_id))

    async def get_for_tenant(self, tenant_id: int, supplier_id: int) -> Optional[Supplier]:
        stmt = select(Supplier).where(Supplier.id == supplier_id, Supplier.tenant_id == tenant_id)
        return await self.scalar_one_or_none(stmt)

    async def list_with_product_counts(
        self,
        tenant_id: int,
        *,
        search: Optional[str],
        sort_by: str,
        sort_order: str,
        limit: int,
        offset: int,
    ) -> Tuple[List[Tuple[Supplier, int]], int]:
        base = select(Supplier).where(Supplier.tenant_id == tenant_id)
        if search:
            pattern = f"%{search.lower()}%"
            base = base.where(
                or_(
                    func.lower(Supplier.name).like(pattern),
                    func.lower(Supplier.email).like(pattern),
                    func.lower(Supplier.contact_person).like(pattern),
                )
            )
        total = await self.count(base)

        products_count = (
            select(func.count(Product.id))
            .where(Product.supplier_id == Supplier.id)
            .correlate(Supplier)
            .scalar_subquery()
        )
        column = SUPPLIER_SORT_COLUMNS.get(sort_by, Supplier.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        stmt = (
            base.add_columns(products_count.label("products_count"))
            .order_by(ordering, Supplier.id)
            .offset(offset)
            .limit(limit)
        )
        res = await self.execute(stmt)
        return [(row[0], int(row[1])) for row in res.all()], total

    async def count_products(self, supplier_id: int) -> int:
        res = await self.execute(select(func.count(Product.id)).where(Product.supplier_id == supplier_id))
        return int(res.scalar_one())

    async def list_products(self, tenant_id: int, supplier_id: int) -> List[Product]:
        stmt = (
            select(Product)
            .where(Product.tenant_id == tenant_id, Product.supplier_id == supplier_id)
            .order_by(Product.name)
        )
        return list(await self.scalars(stmt))
