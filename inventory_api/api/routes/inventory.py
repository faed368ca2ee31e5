from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import PageParams, Principal, get_current_principal, get_page_params
from inventory_api.db.models.inventory import TransactionType
from inventory_api.db.session import get_async_session
from inventory_api.schemas.common import Page, PageMeta
from inventory_api.schemas.inventory import (
    InventorySummary,
    StockMovementRequest,
    StockMovementResult,
    TransactionCreate,
    TransactionRead,
)
from inventory_api.schemas.master_data import ProductRead
from inventory_api.services.inventory import InventoryService, StockMovement

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def _result(movement: StockMovement) -> StockMovementResult:
    return StockMovementResult(
        transaction=TransactionRead.model_validate(movement.transaction),
        product=ProductRead.model_validate(movement.product),
        previous_stock=movement.previous_stock,
        new_stock=movement.new_stock,
    )


async def _record(
    session: AsyncSession, principal: Principal, payload: StockMovementRequest, type: TransactionType
) -> StockMovementResult:
    try:
        body = TransactionCreate(type=type, **payload.model_dump())
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False, include_context=False)) from exc
    return _result(await InventoryService(session).record(principal, body))


# PUBLIC_INTERFACE
@router.post(
    "/transaction",
    response_model=StockMovementResult,
    status_code=status.HTTP_201_CREATED,
    summary="Record stock movement",
    description=(
        "IN adds stock, OUT removes it (400 when stock would go negative), "
        "ADJUSTMENT sets the absolute stock level."
    ),
)
async def create_transaction(
    payload: TransactionCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> StockMovementResult:
    return _result(await InventoryService(session).record(principal, payload))


# PUBLIC_INTERFACE
@router.post("/in", response_model=StockMovementResult, status_code=status.HTTP_201_CREATED, summary="Stock entry")
async def stock_in(
    payload: StockMovementRequest,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> StockMovementResult:
    return await _record(session, principal, payload, TransactionType.IN)


# PUBLIC_INTERFACE
@router.post("/out", response_model=StockMovementResult, status_code=status.HTTP_201_CREATED, summary="Stock exit")
async def stock_out(
    payload: StockMovementRequest,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> StockMovementResult:
    return await _record(session, principal, payload, TransactionType.OUT)


# PUBLIC_INTERFACE
@router.post(
    "/adjustment",
    response_model=StockMovementResult,
    status_code=status.HTTP_201_CREATED,
    summary="Stock adjustment",
    description="Set the product stock to `quantity`.",
)
async def stock_adjustment(
    payload: StockMovementRequest,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> StockMovementResult:
    return await _record(session, principal, payload, TransactionType.ADJUSTMENT)


# PUBLIC_INTERFACE
@router.get(
    "/transactions",
    response_model=Page[TransactionRead],
    summary="List stock movements",
    description="Newest first, optionally filtered by type.",
)
async def list_transactions(
    type: Optional[TransactionType] = Query(None, description="IN, OUT or ADJUSTMENT"),
    page: PageParams = Depends(get_page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> Page[TransactionRead]:
    rows, total = await InventoryService(session).list(principal, page, type=type)
    return Page[TransactionRead](
        data=[TransactionRead.model_validate(t) for t in rows],
        meta=PageMeta.build(total=total, page=page.page, limit=page.limit),
    )


# PUBLIC_INTERFACE
@router.get(
    "/transactions/product/{product_id}",
    response_model=Page[TransactionRead],
    summary="Product stock history",
)
async def product_history(
    product_id: int,
    page: PageParams = Depends(get_page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> Page[TransactionRead]:
    rows, total = await InventoryService(session).product_history(principal, product_id, page)
    return Page[TransactionRead](
        data=[TransactionRead.model_validate(t) for t in rows],
        meta=PageMeta.build(total=total, page=page.page, limit=page.limit),
    )


# PUBLIC_INTERFACE
@router.get("/summary", response_model=InventorySummary, summary="Inventory summary")
async def inventory_summary(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> InventorySummary:
    return await InventoryService(session).summary(principal)
