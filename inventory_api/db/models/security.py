from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_api.db.base import Base, CreatedAtMixin, IntPkMixin, TenantMixin, TimestampMixin


class Role(IntPkMixin, TimestampMixin, Base):
    """Platform-wide role; users reference exactly one."""
    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class User(IntPkMixin, TenantMixin, TimestampMixin, Base):
    """Application user within a tenant."""
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    role_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("roles.id"), nullable=False
    )

    role: Mapped["Role"] = relationship("Role", lazy="selectin")


class RefreshToken(IntPkMixin, CreatedAtMixin, Base):
    """
    Persisted refresh token (by jti) so tokens can be rotated and revoked.

    A token replaced during rotation points at its successor via replaced_by_jti;
    presenting a revoked token revokes every active token of the user.
    """
    __tablename__ = "refresh_tokens"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    jti: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    replaced_by_jti: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
