from __future__ import annotations

from typing import List

from sqlalchemy import select

from inventory_api.db.models.analytics import Report
from .base import BaseRepository


class ReportRepository(BaseRepository):
    """Repository for generated report records."""

    async def list_for_tenant(self, tenant_id: int) -> List[Report]:
        stmt = (
            select(Report)
            .where(Report.tenant_id == tenant_id)
            .order_by(Report.created_at.desc(), Report.id.desc())
        )
        return list(await self.scalars(stmt))
