from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, update

from inventory_api.db.models.security import RefreshToken, Role, User
from .base import BaseRepository


class UserRepository(BaseRepository):
    """Repository for users. Lookups by email are global since emails are unique platform-wide."""

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email)
        return await self.scalar_one_or_none(stmt)

    async def get_by_id(self, user_id: int) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        return await self.scalar_one_or_none(stmt)

    async def list_for_tenant(self, tenant_id: int, *, limit: int, offset: int) -> Tuple[List[User], int]:
        stmt = select(User).where(User.tenant_id == tenant_id).order_by(User.created_at.desc(), User.id.desc())
        total = await self.count(stmt)
        rows = await self.scalars(stmt.offset(offset).limit(limit))
        return list(rows), total


class RoleRepository(BaseRepository):
    """Repository for platform roles."""

    async def get_by_id(self, role_id: int) -> Optional[Role]:
        return await self.scalar_one_or_none(select(Role).where(Role.id == role_id))

    async def get_by_name(self, name: str) -> Optional[Role]:
        return await self.scalar_one_or_none(select(Role).where(Role.name == name))

    async def ensure(self, name: str, description: Optional[str] = None) -> Role:
        """Return the named role, creating it when missing."""
        role = await self.get_by_name(name)
        if role is None:
            role = Role(name=name, description=description)
            await self.add(role)
            await self.flush()
        return role


class RefreshTokenRepository(BaseRepository):
    """Repository for persisted refresh tokens."""

    async def get_by_jti(self, jti: str) -> Optional[RefreshToken]:
        return await self.scalar_one_or_none(select(RefreshToken).where(RefreshToken.jti == jti))

    async def create(self, *, user_id: int, jti: str, expires_at: datetime) -> RefreshToken:
        token = RefreshToken(user_id=user_id, jti=jti, expires_at=expires_at)
        await self.add(token)
        return token

    async def revoke_all_for_user(self, user_id: int, *, at: datetime) -> int:
        """Revoke every active token of a user; returns the number of rows touched."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=at)
            .execution_options(synchronize_session="fetch")
        )
        res = await self.execute(stmt)
        return int(res.rowcount or 0)
