from __future__ import annotations

import enum
from typing import Optional

from sqlalchemy import Enum, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_api.db.base import Base, IntPkMixin, TenantMixin, TimestampMixin


class TransactionType(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"


class InventoryTransaction(IntPkMixin, TenantMixin, TimestampMixin, Base):
    """
    Ledger row for a stock movement of one product.

    For ADJUSTMENT rows quantity is the absolute stock level that was set.
    """
    __tablename__ = "inventory_transactions"

    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    supplier_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType, name="transaction_type", native_enum=False, length=16),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    product: Mapped["Product"] = relationship("Product", lazy="selectin")  # noqa: F821
    user: Mapped[Optional["User"]] = relationship("User", lazy="selectin")  # noqa: F821
    supplier: Mapped[Optional["Supplier"]] = relationship("Supplier", lazy="selectin")  # noqa: F821
