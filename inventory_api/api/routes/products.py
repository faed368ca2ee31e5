from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import PageParams, Principal, get_current_principal, get_page_params
from inventory_api.db.session import get_async_session
from inventory_api.schemas.common import MessageResponse, Page, PageMeta
from inventory_api.schemas.master_data import ProductCreate, ProductRead, ProductUpdate, StockStatus
from inventory_api.services.products import ProductService

router = APIRouter(prefix="/products", tags=["Products"])


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
    description="Create a product in the caller's tenant. SKU must be unique within the tenant.",
)
async def create_product(
    payload: ProductCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> ProductRead:
    return ProductRead.model_validate(await ProductService(session).create(principal, payload))


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=Page[ProductRead],
    summary="List products",
    description="Paginated products, filterable by name/SKU search and stock status.",
)
async def list_products(
    search: Optional[str] = Query(None, description="Case-insensitive match on name or SKU"),
    stock_status: StockStatus = Query("all", description="all, low_stock, out_of_stock or in_stock"),
    page: PageParams = Depends(get_page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> Page[ProductRead]:
    rows, total = await ProductService(session).list(principal, page, search=search, stock_status=stock_status)
    return Page[ProductRead](
        data=[ProductRead.model_validate(p) for p in rows],
        meta=PageMeta.build(total=total, page=page.page, limit=page.limit),
    )


# PUBLIC_INTERFACE
@router.get(
    "/low-stock",
    response_model=List[ProductRead],
    summary="Low stock products",
    description="Products below their minimum stock, lowest stock first.",
)
async def list_low_stock(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> List[ProductRead]:
    return [ProductRead.model_validate(p) for p in await ProductService(session).low_stock(principal)]


# PUBLIC_INTERFACE
@router.get("/sku/{sku}", response_model=ProductRead, summary="Get product by SKU")
async def get_product_by_sku(
    sku: str,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> ProductRead:
    return ProductRead.model_validate(await ProductService(session).get_by_sku(principal, sku))


# PUBLIC_INTERFACE
@router.get("/{product_id}", response_model=ProductRead, summary="Get product")
async def get_product(
    product_id: int,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> ProductRead:
    return ProductRead.model_validate(await ProductService(session).get_or_404(principal.tenant_id, product_id))


# PUBLIC_INTERFACE
@router.patch("/{product_id}", response_model=ProductRead, summary="Update product")
async def update_product(
    product_id: int,
    payload: ProductUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> ProductRead:
    return ProductRead.model_validate(await ProductService(session).update(principal, product_id, payload))


# PUBLIC_INTERFACE
@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    summary="Delete product",
    description="Delete a product and its stock ledger. Products on existing orders return 409.",
)
async def delete_product(
    product_id: int,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    await ProductService(session).delete(principal, product_id)
    return MessageResponse(message="Product deleted")
