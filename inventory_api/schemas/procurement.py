from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

SupplierSortField = Literal["name", "email", "contact_person", "created_at"]
SortOrder = Literal["asc", "desc"]


class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Supplier name")
    contact_person: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    website: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    contact_person: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    website: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)


class SupplierRead(BaseModel):
    """Supplier read model."""
    id: int = Field(...)
    tenant_id: int = Field(...)
    name: str = Field(...)
    contact_person: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    website: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
    created_at: datetime = Field(...)
    updated_at: datetime = Field(...)

    class Config:
        from_attributes = True


class SupplierListItem(SupplierRead):
    products_count: int = Field(0, description="Number of products supplied")


class SupplierPage(BaseModel):
    """Supplier listing; uses a flat envelope rather than the shared page meta."""
    data: List[SupplierListItem] = Field(default_factory=list)
    total: int = Field(...)
    page: int = Field(...)
    limit: int = Field(...)
    total_pages: int = Field(...)
