from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from fastapi import HTTPException, status
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import ADMIN, Principal
from inventory_api.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from inventory_api.db.models.security import User
from inventory_api.db.models.tenancy import Tenant
from inventory_api.repositories.security import RefreshTokenRepository, RoleRepository, UserRepository
from inventory_api.repositories.tenancy import TenantRepository
from inventory_api.schemas.auth import LoginRequest, RegisterRequest, TokenPair
from inventory_api.services.base import BaseService, as_utc

logger = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Registration, login and refresh token rotation.

    Refresh tokens are persisted by jti. Each refresh revokes the presented
    token and links it to its successor; presenting a token that was already
    revoked is treated as theft and ends every session of the user.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.users = UserRepository(session)
        self.roles = RoleRepository(session)
        self.tokens = RefreshTokenRepository(session)
        self.tenants = TenantRepository(session)

    async def _issue_tokens(self, user: User, role_name: Optional[str]) -> Tuple[TokenPair, str]:
        access = create_access_token(
            subject=str(user.id), tenant_id=user.tenant_id, role=role_name, email=user.email
        )
        refresh, jti, expires_at = create_refresh_token(subject=str(user.id), tenant_id=user.tenant_id)
        await self.tokens.create(user_id=user.id, jti=jti, expires_at=expires_at)
        return TokenPair(access_token=access, refresh_token=refresh), jti

    # PUBLIC_INTERFACE
    async def register(self, payload: RegisterRequest) -> Tuple[User, TokenPair]:
        """Create a tenant and its first ADMIN user, then sign the user in."""
        if await self.tenants.get_by_name(payload.business_name):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Business name already registered")
        if await self.users.get_by_email(payload.email):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

        role = await self.roles.ensure(ADMIN, "Administrator")
        tenant = Tenant(name=payload.business_name)
        await self.users.add(tenant)
        await self.users.flush()

        user = User(
            tenant_id=tenant.id,
            email=payload.email,
            full_name=payload.full_name,
            password_hash=get_password_hash(payload.password),
            role_id=role.id,
            role=role,
        )
        await self.users.add(user)
        await self.users.flush()

        pair, _ = await self._issue_tokens(user, role.name)
        await self.users.commit()
        logger.info("Registered tenant id=%s with admin user id=%s", tenant.id, user.id)
        return user, pair

    # PUBLIC_INTERFACE
    async def login(self, payload: LoginRequest) -> TokenPair:
        """Verify credentials and issue a token pair. Users of inactive tenants are refused."""
        user = await self.users.get_by_email(payload.email)
        if user is None or not verify_password(payload.password, user.password_hash):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

        tenant = await self.tenants.get(user.tenant_id)
        if tenant is None or not tenant.is_active:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Tenant is inactive")

        user.last_login = datetime.now(tz=timezone.utc)
        pair, _ = await self._issue_tokens(user, user.role.name)
        await self.users.commit()
        return pair

    # PUBLIC_INTERFACE
    async def refresh(self, refresh_token: str) -> TokenPair:
        """Rotate a refresh token."""
        invalid = HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
        try:
            claims = decode_token(refresh_token)
        except JWTError:
            raise invalid
        if claims.get("type") != "refresh" or not claims.get("jti"):
            raise invalid

        stored = await self.tokens.get_by_jti(claims["jti"])
        if stored is None:
            raise invalid

        now = datetime.now(tz=timezone.utc)
        if stored.revoked_at is not None:
            revoked = await self.tokens.revoke_all_for_user(stored.user_id, at=now)
            await self.tokens.commit()
            logger.warning(
                "Revoked refresh token reused for user id=%s; revoked %d active token(s)",
                stored.user_id,
                revoked,
            )
            raise invalid
        if as_utc(stored.expires_at) <= now:
            raise invalid

        user = await self.users.get_by_id(stored.user_id)
        if user is None:
            raise invalid
        tenant = await self.tenants.get(user.tenant_id)
        if tenant is None or not tenant.is_active:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Tenant is inactive")

        pair, new_jti = await self._issue_tokens(user, user.role.name)
        stored.revoked_at = now
        stored.replaced_by_jti = new_jti
        await self.tokens.commit()
        return pair

    # PUBLIC_INTERFACE
    async def logout(self, principal: Principal, refresh_token: Optional[str]) -> None:
        """
        Revoke the given refresh token when it belongs to the caller, otherwise
        revoke all of the caller's active tokens.
        """
        now = datetime.now(tz=timezone.utc)
        stored = None
        if refresh_token:
            try:
                jti = decode_token(refresh_token).get("jti")
            except JWTError:
                jti = None
            if jti:
                stored = await self.tokens.get_by_jti(jti)

        if stored is not None and stored.user_id == principal.id:
            if stored.revoked_at is None:
                stored.revoked_at = now
        else:
            await self.tokens.revoke_all_for_user(principal.id, at=now)
        await self.tokens.commit()
