from __future__ import annotations

import logging
from typing import List, Tuple

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import PageParams, Principal
from inventory_api.db.models.tenancy import Tenant
from inventory_api.repositories.tenancy import TenantRepository
from inventory_api.schemas.tenancy import (
    TenantCounts,
    TenantCreate,
    TenantDetail,
    TenantRead,
    TenantSettingsUpdate,
    TenantStats,
    TenantUpdate,
)
from inventory_api.services.base import BaseService

logger = logging.getLogger(__name__)


class TenantService(BaseService):
    """Tenant administration."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = TenantRepository(session)

    async def _get_or_404(self, tenant_id: int) -> Tenant:
        tenant = await self.repo.get(tenant_id)
        if tenant is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
        return tenant

    async def _ensure_name_free(self, name: str, exclude_id: int | None = None) -> None:
        other = await self.repo.get_by_name(name)
        if other is not None and other.id != exclude_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Tenant name already in use")

    def _check_access(self, principal: Principal, tenant_id: int) -> None:
        if not principal.is_admin and principal.tenant_id != tenant_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access to this tenant is not allowed")

    async def _counts(self, tenant_id: int) -> TenantCounts:
        return TenantCounts(
            users_count=await self.repo.count_users(tenant_id),
            products_count=await self.repo.count_products(tenant_id),
        )

    # PUBLIC_INTERFACE
    async def update_settings(self, principal: Principal, payload: TenantSettingsUpdate) -> Tenant:
        """Rename the caller's own tenant."""
        tenant = await self._get_or_404(principal.tenant_id)
        if payload.name is not None and payload.name != tenant.name:
            await self._ensure_name_free(payload.name, exclude_id=tenant.id)
            tenant.name = payload.name
            await self.repo.commit()
        return tenant

    # PUBLIC_INTERFACE
    async def create(self, payload: TenantCreate) -> Tenant:
        await self._ensure_name_free(payload.name)
        tenant = Tenant(name=payload.name, plan_type=payload.plan_type, is_active=payload.is_active)
        await self.repo.add(tenant)
        await self.repo.commit()
        logger.info("Created tenant id=%s", tenant.id)
        return tenant

    # PUBLIC_INTERFACE
    async def list(self, page: PageParams) -> Tuple[List[Tenant], int]:
        return await self.repo.list_page(limit=page.limit, offset=page.offset)

    # PUBLIC_INTERFACE
    async def get_detail(self, principal: Principal, tenant_id: int) -> TenantDetail:
        self._check_access(principal, tenant_id)
        tenant = await self._get_or_404(tenant_id)
        counts = await self._counts(tenant_id)
        return TenantDetail(
            **TenantRead.model_validate(tenant).model_dump(),
            users_count=counts.users_count,
            products_count=counts.products_count,
        )

    # PUBLIC_INTERFACE
    async def get_stats(self, principal: Principal, tenant_id: int) -> TenantStats:
        self._check_access(principal, tenant_id)
        tenant = await self._get_or_404(tenant_id)
        return TenantStats(**TenantRead.model_validate(tenant).model_dump(), stats=await self._counts(tenant_id))

    # PUBLIC_INTERFACE
    async def update(self, tenant_id: int, payload: TenantUpdate) -> Tenant:
        tenant = await self._get_or_404(tenant_id)
        if payload.name is not None and payload.name != tenant.name:
            await self._ensure_name_free(payload.name, exclude_id=tenant.id)
            tenant.name = payload.name
        if payload.plan_type is not None:
            tenant.plan_type = payload.plan_type
        if payload.is_active is not None:
            tenant.is_active = payload.is_active
        await self.repo.commit()
        return tenant

    # PUBLIC_INTERFACE
    async def delete(self, tenant_id: int) -> None:
        """Delete a tenant; every tenant-owned row goes with it."""
        tenant = await self._get_or_404(tenant_id)
        await self.repo.delete(tenant)
        await self.repo.commit()
        logger.info("Deleted tenant id=%s", tenant_id)
