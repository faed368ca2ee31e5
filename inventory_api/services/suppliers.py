from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import PageParams, Principal
from inventory_api.db.models.master_data import Product
from inventory_api.db.models.procurement import Supplier
from inventory_api.repositories.procurement import SupplierRepository
from inventory_api.schemas.procurement import SupplierCreate, SupplierUpdate
from inventory_api.services.base import BaseService

logger = logging.getLogger(__name__)


class SupplierService(BaseService):
    """Supplier management per tenant."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = SupplierRepository(session)

    async def _get_owned(self, principal: Principal, supplier_id: int) -> Supplier:
        supplier = await self.repo.get(supplier_id)
        if supplier is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
        if supplier.tenant_id != principal.tenant_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access to this supplier is not allowed")
        return supplier

    # PUBLIC_INTERFACE
    async def create(self, principal: Principal, payload: SupplierCreate) -> Supplier:
        supplier = Supplier(tenant_id=principal.tenant_id, **payload.model_dump())
        await self.repo.add(supplier)
        await self.repo.commit()
        logger.info("Created supplier id=%s", supplier.id)
        return supplier

    # PUBLIC_INTERFACE
    async def list(
        self,
        principal: Principal,
        page: PageParams,
        *,
        search: Optional[str],
        sort_by: str,
        sort_order: str,
    ) -> Tuple[List[Tuple[Supplier, int]], int]:
        return await self.repo.list_with_product_counts(
            principal.tenant_id,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=page.limit,
            offset=page.offset,
        )

    # PUBLIC_INTERFACE
    async def get(self, principal: Principal, supplier_id: int) -> Tuple[Supplier, int]:
        """Return the supplier and the number of products it supplies."""
        supplier = await self._get_owned(principal, supplier_id)
        return supplier, await self.repo.count_products(supplier.id)

    # PUBLIC_INTERFACE
    async def update(self, principal: Principal, supplier_id: int, payload: SupplierUpdate) -> Supplier:
        supplier = await self._get_owned(principal, supplier_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            if field == "name" and value is None:
                continue
            setattr(supplier, field, value)
        await self.repo.commit()
        return supplier

    # PUBLIC_INTERFACE
    async def delete(self, principal: Principal, supplier_id: int) -> None:
        """Delete a supplier; its products remain with the supplier cleared."""
        supplier = await self._get_owned(principal, supplier_id)
        await self.repo.delete(supplier)
        await self.repo.commit()
        logger.info("Deleted supplier id=%s", supplier_id)

    # PUBLIC_INTERFACE
    async def products(self, principal: Principal, supplier_id: int) -> List[Product]:
        supplier = await self._get_owned(principal, supplier_id)
        return await self.repo.list_products(principal.tenant_id, supplier.id)
