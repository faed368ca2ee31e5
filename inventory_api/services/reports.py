from __future__ import annotations

import logging
import time
import uuid
from collections import OrderedDict
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import List, Optional

import pandas as pd
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import Principal
from inventory_api.core.settings import get_app_settings
from inventory_api.db.models.analytics import Report, ReportType
from inventory_api.repositories.analytics import ReportRepository
from inventory_api.repositories.inventory import InventoryTransactionRepository
from inventory_api.repositories.master_data import ProductRepository
from inventory_api.repositories.sales import OrderRepository
from inventory_api.schemas.reports import Kpis, LowStockProduct, SalesPoint, TopSellingProduct
from inventory_api.services.base import BaseService, as_utc
from inventory_api.services.dashboard import day_bounds

logger = logging.getLogger(__name__)

REPORT_URL_PREFIX = "/uploads/reports/"
LOW_STOCK_REPORT_LIMIT = 10


def reports_dir() -> Path:
    return Path(get_app_settings().UPLOADS_DIR) / "reports"


def _period_label(start: Optional[date], end: Optional[date]) -> str:
    if not start and not end:
        return "All time"
    return f"{start.isoformat() if start else 'beginning'} to {end.isoformat() if end else 'today'}"


# PUBLIC_INTERFACE
def write_dataframe(df: pd.DataFrame, path: Path, export_format: str, title: str, subtitle: str) -> Path:
    """
    Render a DataFrame to `path` in the requested format.

    Supported formats:
      - csv
      - xlsx (openpyxl engine)
      - pdf (reportlab table with a title and the reporting period)
    """
    export_format = (export_format or "pdf").lower()
    path.parent.mkdir(parents=True, exist_ok=True)

    if export_format == "csv":
        df.to_csv(path, index=False)
        return path

    if export_format == "xlsx":
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Report")
        return path

    from reportlab.lib import colors
    from reportlab.lib.pagesizes import landscape, letter
    from reportlab.lib.styles import getSampleStyleSheet
    from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

    doc = SimpleDocTemplate(
        str(path), pagesize=landscape(letter), leftMargin=18, rightMargin=18, topMargin=18, bottomMargin=18
    )
    styles = getSampleStyleSheet()
    generated = datetime.now(tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    elements: list = [
        Paragraph(title, styles["Title"]),
        Paragraph(f"Period: {subtitle}. Generated {generated}", styles["Normal"]),
        Spacer(1, 12),
    ]
    if df.empty:
        elements.append(Paragraph("No data for the selected period.", styles["Normal"]))
    else:
        data = [list(df.columns)] + df.astype(str).values.tolist()
        table = Table(data, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
                    ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
                    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ]
            )
        )
        elements.append(table)
    doc.build(elements)
    return path


class ReportService(BaseService):
    """
    Sales analytics and downloadable report files.

    Cancelled orders never count towards sales. Date filters are calendar
    dates with an inclusive end date.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.orders = OrderRepository(session)
        self.products = ProductRepository(session)
        self.transactions = InventoryTransactionRepository(session)
        self.reports = ReportRepository(session)

    # PUBLIC_INTERFACE
    async def sales(self, principal: Principal, start_date: Optional[date], end_date: Optional[date]) -> List[SalesPoint]:
        """Per-day order count, sales and profit (total minus product cost of the sold units)."""
        start, end = day_bounds(start_date, end_date)
        orders = await self.orders.list_sales(principal.tenant_id, start=start, end=end)
        days: "OrderedDict[date, dict]" = OrderedDict()
        for order in orders:
            day = as_utc(order.created_at).date()
            bucket = days.setdefault(day, {"order_count": 0, "total": Decimal("0"), "cost": Decimal("0")})
            bucket["order_count"] += 1
            bucket["total"] += Decimal(order.total)
            for item in order.items:
                bucket["cost"] += Decimal(item.product.price_cost) * item.quantity
        return [
            SalesPoint(
                date=day,
                order_count=b["order_count"],
                total_sales=float(round(b["total"], 2)),
                profit=float(round(b["total"] - b["cost"], 2)),
            )
            for day, b in days.items()
        ]

    # PUBLIC_INTERFACE
    async def top_products(
        self, principal: Principal, start_date: Optional[date], end_date: Optional[date], limit: int
    ) -> List[TopSellingProduct]:
        start, end = day_bounds(start_date, end_date)
        rows = await self.orders.top_selling_products(principal.tenant_id, start=start, end=end, limit=limit)
        return [
            TopSellingProduct(product_name=name, sku=sku, quantity_sold=qty, revenue=float(round(revenue, 2)))
            for name, sku, qty, revenue in rows
        ]

    # PUBLIC_INTERFACE
    async def low_stock(self, principal: Principal) -> List[LowStockProduct]:
        products = await self.products.list_low_stock(principal.tenant_id, limit=LOW_STOCK_REPORT_LIMIT)
        return [LowStockProduct.model_validate(p) for p in products]

    # PUBLIC_INTERFACE
    async def kpis(self, principal: Principal, start_date: Optional[date], end_date: Optional[date]) -> Kpis:
        start, end = day_bounds(start_date, end_date)
        total, count, customers = await self.orders.sales_totals(principal.tenant_id, start=start, end=end)
        return Kpis(
            total_sales=float(round(total, 2)),
            total_orders=count,
            average_order_value=float(round(total / count, 2)) if count else 0.0,
            low_stock_count=await self.products.count_low_stock(principal.tenant_id),
            total_customers=customers,
        )

    async def _store(
        self, principal: Principal, report_type: ReportType, df: pd.DataFrame, export_format: str, title: str, period: str
    ) -> str:
        filename = f"report-{report_type.value.lower()}-{int(time.time() * 1000)}-{uuid.uuid4().hex}.{export_format}"
        write_dataframe(df, reports_dir() / filename, export_format, title, period)
        url = f"{REPORT_URL_PREFIX}{filename}"
        await self.reports.add(
            Report(
                tenant_id=principal.tenant_id,
                user_id=principal.id,
                type=report_type,
                format=export_format,
                url=url,
            )
        )
        await self.reports.commit()
        logger.info("Generated %s report %s", report_type.value, filename)
        return url

    # PUBLIC_INTERFACE
    async def generate_sales(
        self, principal: Principal, start_date: Optional[date], end_date: Optional[date], export_format: str
    ) -> str:
        points = await self.sales(principal, start_date, end_date)
        df = pd.DataFrame(
            [p.model_dump() for p in points], columns=["date", "order_count", "total_sales", "profit"]
        )
        return await self._store(
            principal, ReportType.SALES, df, export_format, "Sales report", _period_label(start_date, end_date)
        )

    # PUBLIC_INTERFACE
    async def generate_top_products(
        self,
        principal: Principal,
        start_date: Optional[date],
        end_date: Optional[date],
        limit: int,
        export_format: str,
    ) -> str:
        rows = await self.top_products(principal, start_date, end_date, limit)
        df = pd.DataFrame(
            [r.model_dump() for r in rows], columns=["product_name", "sku", "quantity_sold", "revenue"]
        )
        return await self._store(
            principal,
            ReportType.INVENTORY,
            df,
            export_format,
            "Top products report",
            _period_label(start_date, end_date),
        )

    # PUBLIC_INTERFACE
    async def generate_movements(
        self, principal: Principal, start_date: Optional[date], end_date: Optional[date], export_format: str
    ) -> str:
        start, end = day_bounds(start_date, end_date)
        rows = await self.transactions.list_between(principal.tenant_id, start=start, end=end)
        data = [
            {
                "date": as_utc(tx.created_at).strftime("%Y-%m-%d %H:%M"),
                "type": tx.type.value,
                "sku": tx.product.sku if tx.product else None,
                "product": tx.product.name if tx.product else None,
                "quantity": tx.quantity,
                "reason": tx.reason,
                "user": (tx.user.full_name or tx.user.email) if tx.user else None,
            }
            for tx in rows
        ]
        df = pd.DataFrame(data, columns=["date", "type", "sku", "product", "quantity", "reason", "user"])
        return await self._store(
            principal,
            ReportType.MOVEMENTS,
            df,
            export_format,
            "Inventory movements report",
            _period_label(start_date, end_date),
        )

    # PUBLIC_INTERFACE
    async def history(self, principal: Principal) -> List[Report]:
        return await self.reports.list_for_tenant(principal.tenant_id)
