from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import PageParams, Principal
from inventory_api.db.models.master_data import Product
from inventory_api.repositories.master_data import ProductRepository
from inventory_api.repositories.procurement import SupplierRepository
from inventory_api.schemas.master_data import ProductCreate, ProductUpdate
from inventory_api.services.base import BaseService

logger = logging.getLogger(__name__)


def to_money(value: float | Decimal | None) -> Decimal:
    return Decimal(str(value or 0)).quantize(Decimal("0.01"))


class ProductService(BaseService):
    """Product catalog per tenant."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.products = ProductRepository(session)
        self.suppliers = SupplierRepository(session)

    async def get_or_404(self, tenant_id: int, product_id: int) -> Product:
        product = await self.products.get(tenant_id, product_id)
        if product is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return product

    async def _ensure_sku_free(self, tenant_id: int, sku: str, exclude_id: Optional[int] = None) -> None:
        other = await self.products.get_by_sku(tenant_id, sku)
        if other is not None and other.id != exclude_id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=f"A product with SKU {sku} already exists"
            )

    async def _ensure_supplier(self, tenant_id: int, supplier_id: Optional[int]) -> None:
        if supplier_id is None:
            return
        if await self.suppliers.get_for_tenant(tenant_id, supplier_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")

    # PUBLIC_INTERFACE
    async def create(self, principal: Principal, payload: ProductCreate) -> Product:
        await self._ensure_sku_free(principal.tenant_id, payload.sku)
        await self._ensure_supplier(principal.tenant_id, payload.supplier_id)
        product = Product(
            tenant_id=principal.tenant_id,
            sku=payload.sku,
            name=payload.name,
            description=payload.description,
            price_cost=to_money(payload.price_cost),
            price_sale=to_money(payload.price_sale),
            min_stock=payload.min_stock,
            current_stock=payload.current_stock,
            supplier_id=payload.supplier_id,
        )
        await self.products.add(product)
        await self.products.commit()
        await self.products.refresh(product)
        logger.info("Created product id=%s sku=%s", product.id, product.sku)
        return product

    # PUBLIC_INTERFACE
    async def list(
        self, principal: Principal, page: PageParams, *, search: Optional[str], stock_status: str
    ) -> Tuple[List[Product], int]:
        return await self.products.list_page(
            principal.tenant_id,
            search=search,
            stock_status=stock_status,
            limit=page.limit,
            offset=page.offset,
        )

    # PUBLIC_INTERFACE
    async def low_stock(self, principal: Principal) -> List[Product]:
        return await self.products.list_low_stock(principal.tenant_id)

    # PUBLIC_INTERFACE
    async def get_by_sku(self, principal: Principal, sku: str) -> Product:
        product = await self.products.get_by_sku(principal.tenant_id, sku)
        if product is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return product

    # PUBLIC_INTERFACE
    async def update(self, principal: Principal, product_id: int, payload: ProductUpdate) -> Product:
        product = await self.get_or_404(principal.tenant_id, product_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("sku") is not None and changes["sku"] != product.sku:
            await self._ensure_sku_free(principal.tenant_id, changes["sku"], exclude_id=product.id)
        if "supplier_id" in changes:
            await self._ensure_supplier(principal.tenant_id, changes["supplier_id"])
        for field, value in changes.items():
            if value is None and field != "supplier_id":
                continue
            if field in ("price_cost", "price_sale"):
                value = to_money(value)
            setattr(product, field, value)
        await self.products.commit()
        await self.products.refresh(product)
        return product

    # PUBLIC_INTERFACE
    async def delete(self, principal: Principal, product_id: int) -> None:
        """Delete a product with its stock ledger; products referenced by orders cannot be deleted."""
        product = await self.get_or_404(principal.tenant_id, product_id)
        await self.products.delete(product)
        await self.products.commit()
        logger.info("Deleted product id=%s", product_id)
