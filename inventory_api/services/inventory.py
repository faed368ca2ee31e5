from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import PageParams, Principal
from inventory_api.db.models.inventory import InventoryTransaction, TransactionType
from inventory_api.db.models.master_data import Product
from inventory_api.repositories.inventory import InventoryTransactionRepository
from inventory_api.repositories.master_data import ProductRepository
from inventory_api.repositories.procurement import SupplierRepository
from inventory_api.schemas.inventory import InventorySummary, TransactionCreate
from inventory_api.schemas.realtime import StockChangedEvent
from inventory_api.services.base import BaseService
from inventory_api.services.realtime import broadcast_manager

logger = logging.getLogger(__name__)

DEFAULT_REASONS = {
    TransactionType.IN: "Stock entry",
    TransactionType.OUT: "Stock exit",
    TransactionType.ADJUSTMENT: "Manual adjustment",
}


@dataclass
class StockMovement:
    transaction: InventoryTransaction
    product: Product
    previous_stock: int
    new_stock: int


# PUBLIC_INTERFACE
def apply_movement(current: int, type: TransactionType, quantity: int) -> int:
    """
    Return the stock level after a movement.

    IN adds, OUT subtracts and ADJUSTMENT sets the absolute level.

    Raises:
        HTTPException: 400 when an OUT movement would take stock below zero.
    """
    if type == TransactionType.IN:
        return current + quantity
    if type == TransactionType.OUT:
        if quantity > current:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Insufficient stock. Current stock: {current}, requested: {quantity}",
            )
        return current - quantity
    return quantity


# PUBLIC_INTERFACE
async def publish_stock_change(
    tenant_id: int,
    product: Product,
    previous_stock: int,
    source: str,
    user_id: Optional[int] = None,
) -> None:
    """Notify dashboard subscribers of a stock change; failures are logged, never raised."""
    try:
        event = StockChangedEvent(
            product_id=product.id,
            sku=product.sku,
            previous_stock=previous_stock,
            new_stock=product.current_stock,
            low_stock=product.current_stock < product.min_stock,
            source=source,
        )
        await broadcast_manager.publish_stock_changed(tenant_id, event, user_id=user_id)
    except Exception:
        logger.exception("Failed to publish stock change for product id=%s", product.id)


class InventoryService(BaseService):
    """
    Stock movements.

    The product row is locked, its stock updated and the ledger row written in
    one transaction so the ledger and current_stock never diverge.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.products = ProductRepository(session)
        self.suppliers = SupplierRepository(session)
        self.transactions = InventoryTransactionRepository(session)

    async def _product_or_404(self, tenant_id: int, product_id: int, *, for_update: bool = False) -> Product:
        product = await self.products.get(tenant_id, product_id, for_update=for_update)
        if product is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return product

    # PUBLIC_INTERFACE
    async def record(self, principal: Principal, payload: TransactionCreate) -> StockMovement:
        """Apply a stock movement and write its ledger row."""
        product = await self._product_or_404(principal.tenant_id, payload.product_id, for_update=True)
        if payload.supplier_id is not None:
            if await self.suppliers.get_for_tenant(principal.tenant_id, payload.supplier_id) is None:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")

        previous = product.current_stock
        new_stock = apply_movement(previous, payload.type, payload.quantity)
        product.current_stock = new_stock

        tx = InventoryTransaction(
            tenant_id=principal.tenant_id,
            product_id=product.id,
            user_id=principal.id,
            supplier_id=payload.supplier_id,
            type=payload.type,
            quantity=payload.quantity,
            reason=payload.reason or DEFAULT_REASONS[payload.type],
        )
        await self.transactions.add(tx)
        await self.transactions.commit()
        await self.transactions.refresh(tx)
        logger.info(
            "Stock %s product id=%s qty=%s: %s -> %s",
            payload.type.value,
            product.id,
            payload.quantity,
            previous,
            new_stock,
        )

        await publish_stock_change(principal.tenant_id, product, previous, payload.type.value, principal.id)
        return StockMovement(transaction=tx, product=product, previous_stock=previous, new_stock=new_stock)

    # PUBLIC_INTERFACE
    async def list(
        self, principal: Principal, page: PageParams, *, type: Optional[TransactionType] = None
    ) -> Tuple[List[InventoryTransaction], int]:
        return await self.transactions.list_page(
            principal.tenant_id, type=type, limit=page.limit, offset=page.offset
        )

    # PUBLIC_INTERFACE
    async def product_history(
        self, principal: Principal, product_id: int, page: PageParams
    ) -> Tuple[List[InventoryTransaction], int]:
        await self._product_or_404(principal.tenant_id, product_id)
        return await self.transactions.list_page(
            principal.tenant_id, product_id=product_id, limit=page.limit, offset=page.offset
        )

    # PUBLIC_INTERFACE
    async def summary(self, principal: Principal) -> InventorySummary:
        total_products, total_units = await self.products.stock_totals(principal.tenant_id)
        return InventorySummary(
            total_products=total_products,
            total_transactions=await self.transactions.count_for_tenant(principal.tenant_id),
            low_stock_count=await self.products.count_low_stock(principal.tenant_id),
            total_units=total_units,
        )
