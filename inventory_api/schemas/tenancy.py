from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from inventory_api.db.models.tenancy import PlanType


class TenantRead(BaseModel):
    """Tenant read model."""
    id: int = Field(..., description="Tenant ID")
    name: str = Field(..., description="Business name")
    plan_type: PlanType = Field(..., description="Subscription plan")
    is_active: bool = Field(..., description="Inactive tenants cannot log in")
    created_at: datetime = Field(...)
    updated_at: datetime = Field(...)

    class Config:
        from_attributes = True


class TenantDetail(TenantRead):
    users_count: int = Field(0)
    products_count: int = Field(0)


class TenantCounts(BaseModel):
    users_count: int = Field(0)
    products_count: int = Field(0)


class TenantStats(TenantRead):
    stats: TenantCounts


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Business name (unique)")
    plan_type: PlanType = Field(PlanType.FREE)
    is_active: bool = Field(True)


class TenantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    plan_type: Optional[PlanType] = Field(None)
    is_active: Optional[bool] = Field(None)


class TenantSettingsUpdate(BaseModel):
    """Settings an admin may change on their own tenant; other keys are ignored."""
    name: Optional[str] = Field(None, min_length=1)
