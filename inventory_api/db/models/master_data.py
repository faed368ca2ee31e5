from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_api.db.base import Base, IntPkMixin, TenantMixin, TimestampMixin


class Product(IntPkMixin, TenantMixin, TimestampMixin, Base):
    """Product master record with its current stock level."""
    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("tenant_id", "sku", name="uq_products_tenant_sku"),
        CheckConstraint("current_stock >= 0", name="current_stock_non_negative"),
        CheckConstraint("min_stock >= 0", name="min_stock_non_negative"),
    )

    sku: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    price_sale: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    min_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    current_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    supplier_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True
    )

    supplier: Mapped[Optional["Supplier"]] = relationship("Supplier", lazy="selectin")  # noqa: F821
