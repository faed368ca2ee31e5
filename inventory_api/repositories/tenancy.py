from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import func, select

from inventory_api.db.models.master_data import Product
from inventory_api.db.models.security import User
from inventory_api.db.models.tenancy import Tenant
from .base import BaseRepository


class TenantRepository(BaseRepository):
    """Repository for tenants. Tenants are the isolation boundary, so they are not tenant-scoped."""

    async def get(self, tenant_id: int) -> Optional[Tenant]:
        return await self.scalar_one_or_none(select(Tenant).where(Tenant.id == tenant_id))

    async def get_by_name(self, name: str) -> Optional[Tenant]:
        return await self.scalar_one_or_none(select(Tenant).where(Tenant.name == name))

    async def list_page(self, *, limit: int, offset: int) -> Tuple[List[Tenant], int]:
        stmt = select(Tenant).order_by(Tenant.id)
        total = await self.count(stmt)
        rows = await self.scalars(stmt.offset(offset).limit(limit))
        return list(rows), total

    async def count_users(self, tenant_id: int) -> int:
        res = await self.execute(select(func.count(User.id)).where(User.tenant_id == tenant_id))
        return int(res.scalar_one())

    async def count_products(self, tenant_id: int) -> int:
        res = await self.execute(select(func.count(Product.id)).where(Product.tenant_id == tenant_id))
        return int(res.scalar_one())
