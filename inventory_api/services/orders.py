from __future__ import annotations

import logging
import random
from collections import OrderedDict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import PageParams, Principal
from inventory_api.db.models.master_data import Product
from inventory_api.db.models.sales import Order, OrderItem, OrderStatus
from inventory_api.repositories.master_data import ProductRepository
from inventory_api.repositories.sales import OrderRepository
from inventory_api.schemas.realtime import OrderStatusChangedEvent
from inventory_api.schemas.sales import OrderCreate, OrderUpdate
from inventory_api.services.base import BaseService
from inventory_api.services.inventory import publish_stock_change
from inventory_api.services.realtime import broadcast_manager

logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 10


def _insufficient(product: Product, requested: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=(
            f"Insufficient stock for product {product.name} (SKU: {product.sku}). "
            f"Available: {product.current_stock}, requested: {requested}"
        ),
    )


class OrderService(BaseService):
    """
    Order lifecycle and its effect on stock.

    Stock is untouched while an order is PENDING or CANCELLED. Entering COMPLETED
    takes the ordered units out of stock; leaving COMPLETED puts them back.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.orders = OrderRepository(session)
        self.products = ProductRepository(session)

    async def _get_or_404(self, principal: Principal, order_id: int, *, for_update: bool = False) -> Order:
        order = await self.orders.get(principal.tenant_id, order_id, for_update=for_update)
        if order is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
        return order

    async def _generate_order_number(self) -> str:
        prefix = f"ORD-{datetime.now(tz=timezone.utc):%Y%m%d}"
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            candidate = f"{prefix}-{random.randint(0, 9999):04d}"
            if not await self.orders.number_exists(candidate):
                return candidate
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Could not allocate an order number")

    # PUBLIC_INTERFACE
    async def create(self, principal: Principal, payload: OrderCreate) -> Order:
        """
        Create a PENDING order priced at the products' sale prices.

        Repeated lines for the same product are merged. Every product must have
        enough stock for the requested quantity, but stock is only reserved when
        the order is completed.
        """
        quantities: Dict[int, int] = OrderedDict()
        for line in payload.items:
            quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity

        products = {p.id: p for p in await self.products.get_many(principal.tenant_id, quantities.keys())}
        missing = [pid for pid in quantities if pid not in products]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Products not found: {', '.join(str(pid) for pid in missing)}",
            )

        items: List[OrderItem] = []
        total = Decimal("0")
        for product_id, qty in quantities.items():
            product = products[product_id]
            if qty > product.current_stock:
                raise _insufficient(product, qty)
            unit_price = Decimal(product.price_sale)
            subtotal = unit_price * qty
            total += subtotal
            items.append(
                OrderItem(product_id=product.id, product=product, quantity=qty, unit_price=unit_price, subtotal=subtotal)
            )

        order = Order(
            tenant_id=principal.tenant_id,
            user_id=principal.id,
            user=principal.user,
            order_number=await self._generate_order_number(),
            status=OrderStatus.PENDING,
            total=total,
            notes=payload.notes,
            items=items,
        )
        await self.orders.add(order)
        await self.orders.commit()
        logger.info("Created order %s with %d line(s), total=%s", order.order_number, len(items), total)
        return order

    # PUBLIC_INTERFACE
    async def list(
        self,
        principal: Principal,
        page: PageParams,
        *,
        status_filter: Optional[OrderStatus],
        search: Optional[str],
        sort: str,
    ) -> Tuple[List[Order], int]:
        return await self.orders.list_page(
            principal.tenant_id,
            status=status_filter,
            search=search,
            sort=sort,
            limit=page.limit,
            offset=page.offset,
        )

    # PUBLIC_INTERFACE
    async def get(self, principal: Principal, order_id: int) -> Order:
        return await self._get_or_404(principal, order_id)

    # PUBLIC_INTERFACE
    async def pending_count(self, principal: Principal) -> int:
        return await self.orders.count_by_status(principal.tenant_id, OrderStatus.PENDING)

    # PUBLIC_INTERFACE
    async def update(self, principal: Principal, order_id: int, payload: OrderUpdate) -> Order:
        """
        Update notes and/or status. A status change and the stock it moves are
        committed together. The order row is locked before its products.
        """
        order = await self._get_or_404(principal, order_id, for_update=True)
        if "notes" in payload.model_fields_set:
            order.notes = payload.notes

        previous_status = order.status
        moved: List[Tuple[Product, int]] = []
        if payload.status is not None and payload.status != previous_status:
            quantities: Dict[int, int] = {}
            for item in order.items:
                quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
            locked = {
                p.id: p
                for p in await self.products.get_many(principal.tenant_id, quantities.keys(), for_update=True)
            }

            if payload.status == OrderStatus.COMPLETED:
                for product_id, qty in quantities.items():
                    product = locked.get(product_id)
                    if product is None:
                        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Product not found")
                    if qty > product.current_stock:
                        raise _insufficient(product, qty)
                for product_id, qty in quantities.items():
                    product = locked[product_id]
                    moved.append((product, product.current_stock))
                    product.current_stock -= qty
            elif previous_status == OrderStatus.COMPLETED:
                for product_id, qty in quantities.items():
                    product = locked.get(product_id)
                    if product is None:
                        continue
                    moved.append((product, product.current_stock))
                    product.current_stock += qty

            order.status = payload.status

        await self.orders.commit()

        if order.status != previous_status:
            logger.info(
                "Order %s status %s -> %s; %d product(s) restocked/destocked",
                order.order_number,
                previous_status.value,
                order.status.value,
                len(moved),
            )
            for product, before in moved:
                await publish_stock_change(principal.tenant_id, product, before, "ORDER", principal.id)
            try:
                await broadcast_manager.publish_order_status(
                    principal.tenant_id,
                    OrderStatusChangedEvent(
                        order_id=order.id,
                        order_number=order.order_number,
                        previous_status=previous_status.value,
                        status=order.status.value,
                    ),
                    user_id=principal.id,
                )
            except Exception:
                logger.exception("Failed to publish order status change for order id=%s", order.id)
        return order

    # PUBLIC_INTERFACE
    async def delete(self, principal: Principal, order_id: int) -> None:
        order = await self._get_or_404(principal, order_id, for_update=True)
        if order.status != OrderStatus.PENDING:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Only pending orders can be deleted"
            )
        await self.orders.delete(order)
        await self.orders.commit()
        logger.info("Deleted order %s", order.order_number)
