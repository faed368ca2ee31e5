from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import PageParams, Principal, get_current_principal, get_page_params
from inventory_api.db.models.inventory import TransactionType
from inventory_api.db.session import get_async_session
from inventory_api.schemas.dashboard import (
    DashboardSummary,
    InventoryValueReport,
    LowStockPage,
    TopProductRow,
    TransactionsReport,
)
from inventory_api.services.dashboard import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


# PUBLIC_INTERFACE
@router.get(
    "/summary",
    response_model=DashboardSummary,
    summary="Dashboard summary",
    description="Product and movement counts, inventory valuation and the five latest movements.",
)
async def dashboard_summary(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> DashboardSummary:
    return await DashboardService(session).summary(principal)


# PUBLIC_INTERFACE
@router.get("/low-stock", response_model=LowStockPage, summary="Low stock alert", description="Ordered by deficit.")
async def low_stock(
    page: PageParams = Depends(get_page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> LowStockPage:
    return await DashboardService(session).low_stock(principal, page)


# PUBLIC_INTERFACE
@router.get("/inventory-value", response_model=InventoryValueReport, summary="Inventory valuation")
async def inventory_value(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> InventoryValueReport:
    return await DashboardService(session).inventory_value(principal)


# PUBLIC_INTERFACE
@router.get(
    "/transactions-report",
    response_model=TransactionsReport,
    summary="Movements report",
    description="Movements in a date range (end date inclusive) with per-type totals.",
)
async def transactions_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    type: Optional[TransactionType] = Query(None),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> TransactionsReport:
    return await DashboardService(session).transactions_report(
        principal, start_date=start_date, end_date=end_date, type=type
    )


# PUBLIC_INTERFACE
@router.get("/top-products", response_model=List[TopProductRow], summary="Most moved products")
async def top_products(
    limit: int = Query(10, ge=1, description="Capped at 50"),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> List[TopProductRow]:
    return await DashboardService(session).top_products(principal, limit)
