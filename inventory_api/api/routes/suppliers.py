from __future__ import annotations

import math
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import PageParams, Principal, get_current_principal, get_page_params
from inventory_api.db.session import get_async_session
from inventory_api.schemas.common import MessageResponse
from inventory_api.schemas.master_data import ProductRead
from inventory_api.schemas.procurement import (
    SortOrder,
    SupplierCreate,
    SupplierListItem,
    SupplierPage,
    SupplierRead,
    SupplierSortField,
    SupplierUpdate,
)
from inventory_api.services.suppliers import SupplierService

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])


# PUBLIC_INTERFACE
@router.post("", response_model=SupplierRead, status_code=status.HTTP_201_CREATED, summary="Create supplier")
async def create_supplier(
    payload: SupplierCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> SupplierRead:
    return SupplierRead.model_validate(await SupplierService(session).create(principal, payload))


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=SupplierPage,
    summary="List suppliers",
    description="Search by name, email or contact person; each row carries its products_count.",
)
async def list_suppliers(
    search: Optional[str] = Query(None),
    sort_by: SupplierSortField = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    page: PageParams = Depends(get_page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> SupplierPage:
    rows, total = await SupplierService(session).list(
        principal, page, search=search, sort_by=sort_by, sort_order=sort_order
    )
    data = [
        SupplierListItem(**SupplierRead.model_validate(s).model_dump(), products_count=count) for s, count in rows
    ]
    return SupplierPage(
        data=data,
        total=total,
        page=page.page,
        limit=page.limit,
        total_pages=math.ceil(total / page.limit) if total else 0,
    )


# PUBLIC_INTERFACE
@router.get("/{supplier_id}", response_model=SupplierListItem, summary="Get supplier")
async def get_supplier(
    supplier_id: int,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> SupplierListItem:
    supplier, count = await SupplierService(session).get(principal, supplier_id)
    return SupplierListItem(**SupplierRead.model_validate(supplier).model_dump(), products_count=count)


# PUBLIC_INTERFACE
@router.patch("/{supplier_id}", response_model=SupplierRead, summary="Update supplier")
async def update_supplier(
    supplier_id: int,
    payload: SupplierUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> SupplierRead:
    return SupplierRead.model_validate(await SupplierService(session).update(principal, supplier_id, payload))


# PUBLIC_INTERFACE
@router.delete(
    "/{supplier_id}",
    response_model=MessageResponse,
    summary="Delete supplier",
    description="Products of the supplier are kept with their supplier cleared.",
)
async def delete_supplier(
    supplier_id: int,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    await SupplierService(session).delete(principal, supplier_id)
    return MessageResponse(message="Supplier deleted")


# PUBLIC_INTERFACE
@router.get("/{supplier_id}/products", response_model=List[ProductRead], summary="Products of a supplier")
async def supplier_products(
    supplier_id: int,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> List[ProductRead]:
    products = await SupplierService(session).products(principal, supplier_id)
    return [ProductRead.model_validate(p) for p in products]
