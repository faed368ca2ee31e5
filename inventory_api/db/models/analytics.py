from __future__ import annotations

import enum
from typing import Optional

from sqlalchemy import Enum, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_api.db.base import Base, CreatedAtMixin, IntPkMixin, TenantMixin


class ReportType(str, enum.Enum):
    SALES = "SALES"
    INVENTORY = "INVENTORY"
    MOVEMENTS = "MOVEMENTS"


class Report(IntPkMixin, TenantMixin, CreatedAtMixin, Base):
    """A rendered report file available under the uploads mount."""
    __tablename__ = "reports"

    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[ReportType] = mapped_column(
        Enum(ReportType, name="report_type", native_enum=False, length=16), nullable=False
    )
    format: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
