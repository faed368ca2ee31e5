from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select

from inventory_api.db.models.inventory import InventoryTransaction, TransactionType
from inventory_api.db.models.master_data import Product
from .base import BaseRepository


class InventoryTransactionRepository(BaseRepository):
    """Repository for the stock movement ledger."""

    def _scoped(self, tenant_id: int):
        return select(InventoryTransaction).where(InventoryTransaction.tenant_id == tenant_id)

    async def list_page(
        self,
        tenant_id: int,
        *,
        type: Optional[TransactionType] = None,
        product_id: Optional[int] = None,
        limit: int,
        offset: int,
    ) -> Tuple[List[InventoryTransaction], int]:
        stmt = self._scoped(tenant_id)
        if type is not None:
            stmt = stmt.where(InventoryTransaction.type == type)
        if product_id is not None:
            stmt = stmt.where(InventoryTransaction.product_id == product_id)
        total = await self.count(stmt)
        stmt = (
            stmt.order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(await self.scalars(stmt)), total

    async def list_between(
        self,
        tenant_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        type: Optional[TransactionType] = None,
    ) -> List[InventoryTransaction]:
        stmt = self._scoped(tenant_id)
        if start is not None:
            stmt = stmt.where(InventoryTransaction.created_at >= start)
        if end is not None:
            stmt = stmt.where(InventoryTransaction.created_at <= end)
        if type is not None:
            stmt = stmt.where(InventoryTransaction.type == type)
        stmt = stmt.order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
        return list(await self.scalars(stmt))

    async def recent(self, tenant_id: int, limit: int = 5) -> List[InventoryTransaction]:
        stmt = (
            self._scoped(tenant_id)
            .order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
            .limit(limit)
        )
        return list(await self.scalars(stmt))

    async def count_for_tenant(self, tenant_id: int) -> int:
        return await self.count(self._scoped(tenant_id))

    async def top_products(self, tenant_id: int, limit: int) -> List[Tuple[Product, int]]:
        """Products ordered by the number of ledger rows that reference them."""
        tx_count = func.count(InventoryTransaction.id).label("transactions_count")
        stmt = (
            select(Product, tx_count)
            .join(InventoryTransaction, InventoryTransaction.product_id == Product.id)
            .where(Product.tenant_id == tenant_id, InventoryTransaction.tenant_id == tenant_id)
            .group_by(Product.id)
            .order_by(tx_count.desc(), Product.id)
            .limit(limit)
        )
        res = await self.execute(stmt)
        return [(row[0], int(row[1])) for row in res.all()]
