from __future__ import annotations

import enum

from sqlalchemy import Boolean, Enum, Text, true
from sqlalchemy.orm import Mapped, mapped_column

from inventory_api.db.base import Base, IntPkMixin, TimestampMixin


class PlanType(str, enum.Enum):
    FREE = "FREE"
    BASIC = "BASIC"
    PREMIUM = "PREMIUM"


class Tenant(IntPkMixin, TimestampMixin, Base):
    """An isolated business account; every other business row hangs off a tenant."""
    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    plan_type: Mapped[PlanType] = mapped_column(
        Enum(PlanType, name="plan_type", native_enum=False, length=16),
        nullable=False,
        default=PlanType.FREE,
        server_default=PlanType.FREE.value,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
