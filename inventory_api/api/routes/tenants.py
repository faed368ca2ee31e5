from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import (
    ADMIN,
    PageParams,
    Principal,
    get_current_principal,
    get_page_params,
    require_roles,
)
from inventory_api.db.session import get_async_session
from inventory_api.schemas.common import MessageResponse, Page, PageMeta
from inventory_api.schemas.tenancy import (
    TenantCreate,
    TenantDetail,
    TenantRead,
    TenantSettingsUpdate,
    TenantStats,
    TenantUpdate,
)
from inventory_api.services.tenancy import TenantService

router = APIRouter(prefix="/tenants", tags=["Tenants"])


# PUBLIC_INTERFACE
@router.patch(
    "/settings",
    response_model=TenantRead,
    summary="Update own tenant settings",
    description="Rename the caller's tenant. Plan and activation flags are ignored here.",
)
async def update_settings(
    payload: TenantSettingsUpdate,
    principal: Principal = Depends(require_roles(ADMIN)),
    session: AsyncSession = Depends(get_async_session),
) -> TenantRead:
    return TenantRead.model_validate(await TenantService(session).update_settings(principal, payload))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TenantRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create tenant",
    dependencies=[Depends(require_roles(ADMIN))],
)
async def create_tenant(
    payload: TenantCreate,
    session: AsyncSession = Depends(get_async_session),
) -> TenantRead:
    return TenantRead.model_validate(await TenantService(session).create(payload))


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=Page[TenantRead],
    summary="List tenants",
    dependencies=[Depends(require_roles(ADMIN))],
)
async def list_tenants(
    page: PageParams = Depends(get_page_params),
    session: AsyncSession = Depends(get_async_session),
) -> Page[TenantRead]:
    rows, total = await TenantService(session).list(page)
    return Page[TenantRead](
        data=[TenantRead.model_validate(t) for t in rows],
        meta=PageMeta.build(total=total, page=page.page, limit=page.limit),
    )


# PUBLIC_INTERFACE
@router.get(
    "/{tenant_id}",
    response_model=TenantDetail,
    summary="Get tenant",
    description="Tenant with user and product counts. Non-admins may only read their own tenant.",
)
async def get_tenant(
    tenant_id: int,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> TenantDetail:
    return await TenantService(session).get_detail(principal, tenant_id)


# PUBLIC_INTERFACE
@router.get(
    "/{tenant_id}/stats",
    response_model=TenantStats,
    summary="Tenant statistics",
)
async def get_tenant_stats(
    tenant_id: int,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> TenantStats:
    return await TenantService(session).get_stats(principal, tenant_id)


# PUBLIC_INTERFACE
@router.patch(
    "/{tenant_id}",
    response_model=TenantRead,
    summary="Update tenant",
    dependencies=[Depends(require_roles(ADMIN))],
)
async def update_tenant(
    tenant_id: int,
    payload: TenantUpdate,
    session: AsyncSession = Depends(get_async_session),
) -> TenantRead:
    return TenantRead.model_validate(await TenantService(session).update(tenant_id, payload))


# PUBLIC_INTERFACE
@router.delete(
    "/{tenant_id}",
    response_model=MessageResponse,
    summary="Delete tenant",
    description="Delete a tenant together with all of its data.",
    dependencies=[Depends(require_roles(ADMIN))],
)
async def delete_tenant(
    tenant_id: int,
    session: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    await TenantService(session).delete(tenant_id)
    return MessageResponse(message="Tenant deleted")
