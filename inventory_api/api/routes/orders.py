from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import PageParams, Principal, get_current_principal, get_page_params
from inventory_api.db.models.sales import OrderStatus
from inventory_api.db.session import get_async_session
from inventory_api.schemas.common import MessageResponse, Page, PageMeta
from inventory_api.schemas.sales import OrderCreate, OrderRead, OrderSort, OrderUpdate, PendingCount
from inventory_api.services.orders import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


# PUBLIC_INTERFACE
@router.get("/stats/pending-count", response_model=PendingCount, summary="Count pending orders")
async def pending_count(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> PendingCount:
    return PendingCount(count=await OrderService(session).pending_count(principal))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
    description=(
        "Create a PENDING order priced at the products' sale prices. "
        "Stock is checked but only moves when the order is completed."
    ),
)
async def create_order(
    payload: OrderCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> OrderRead:
    return OrderRead.model_validate(await OrderService(session).create(principal, payload))


# PUBLIC_INTERFACE
@router.get("", response_model=Page[OrderRead], summary="List orders")
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status", description="Filter by status"),
    search: Optional[str] = Query(None, description="Order number or creator name"),
    sort: OrderSort = Query("newest", description="newest, oldest, highest_total or lowest_total"),
    page: PageParams = Depends(get_page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> Page[OrderRead]:
    rows, total = await OrderService(session).list(
        principal, page, status_filter=status_filter, search=search, sort=sort
    )
    return Page[OrderRead](
        data=[OrderRead.model_validate(o) for o in rows],
        meta=PageMeta.build(total=total, page=page.page, limit=page.limit),
    )


# PUBLIC_INTERFACE
@router.get("/{order_id}", response_model=OrderRead, summary="Get order")
async def get_order(
    order_id: int,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> OrderRead:
    return OrderRead.model_validate(await OrderService(session).get(principal, order_id))


# PUBLIC_INTERFACE
@router.patch(
    "/{order_id}",
    response_model=OrderRead,
    summary="Update order",
    description=(
        "Change status and/or notes. Entering COMPLETED deducts stock; "
        "leaving COMPLETED returns it."
    ),
)
async def update_order(
    order_id: int,
    payload: OrderUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> OrderRead:
    return OrderRead.model_validate(await OrderService(session).update(principal, order_id, payload))


# PUBLIC_INTERFACE
@router.delete(
    "/{order_id}",
    response_model=MessageResponse,
    summary="Delete order",
    description="Only PENDING orders can be deleted.",
)
async def delete_order(
    order_id: int,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    await OrderService(session).delete(principal, order_id)
    return MessageResponse(message="Order deleted")
