from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import Principal, get_current_principal
from inventory_api.db.session import get_async_session
from inventory_api.schemas.reports import (
    Kpis,
    LowStockProduct,
    ReportFile,
    ReportFormat,
    ReportRead,
    SalesPoint,
    TopSellingProduct,
)
from inventory_api.services.reports import ReportService

# PUBLIC_INTERFACE
router = APIRouter(prefix="/reports", tags=["Reports"])


# PUBLIC_INTERFACE
@router.get(
    "/sales",
    response_model=List[SalesPoint],
    summary="Sales by day",
    description="Order count, sales and profit per day. Cancelled orders are excluded.",
)
async def sales(
    start_date: Optional[date] = Query(None, description="First day (inclusive)"),
    end_date: Optional[date] = Query(None, description="Last day (inclusive)"),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> List[SalesPoint]:
    return await ReportService(session).sales(principal, start_date, end_date)


# PUBLIC_INTERFACE
@router.get("/top-products", response_model=List[TopSellingProduct], summary="Top selling products")
async def top_products(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> List[TopSellingProduct]:
    return await ReportService(session).top_products(principal, start_date, end_date, limit)


# PUBLIC_INTERFACE
@router.get("/low-stock", response_model=List[LowStockProduct], summary="Low stock products")
async def low_stock(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> List[LowStockProduct]:
    return await ReportService(session).low_stock(principal)


# PUBLIC_INTERFACE
@router.get("/kpis", response_model=Kpis, summary="Key performance indicators")
async def kpis(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> Kpis:
    return await ReportService(session).kpis(principal, start_date, end_date)


# PUBLIC_INTERFACE
@router.get(
    "/generate/sales",
    response_model=ReportFile,
    summary="Generate sales report",
    description="Render daily sales to pdf, csv or xlsx and return the file URL.",
)
async def generate_sales(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    format: ReportFormat = Query("pdf"),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> ReportFile:
    url = await ReportService(session).generate_sales(principal, start_date, end_date, format)
    return ReportFile(url=url)


# PUBLIC_INTERFACE
@router.get("/generate/top-products", response_model=ReportFile, summary="Generate top products report")
async def generate_top_products(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    format: ReportFormat = Query("pdf"),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> ReportFile:
    url = await ReportService(session).generate_top_products(principal, start_date, end_date, limit, format)
    return ReportFile(url=url)


# PUBLIC_INTERFACE
@router.get("/generate/movements", response_model=ReportFile, summary="Generate inventory movements report")
async def generate_movements(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    format: ReportFormat = Query("pdf"),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> ReportFile:
    url = await ReportService(session).generate_movements(principal, start_date, end_date, format)
    return ReportFile(url=url)


# PUBLIC_INTERFACE
@router.get("/history", response_model=List[ReportRead], summary="Generated reports")
async def history(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> List[ReportRead]:
    return [ReportRead.model_validate(r) for r in await ReportService(session).history(principal)]
