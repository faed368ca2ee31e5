from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.logging import bind_principal
from inventory_api.core.security import decode_token
from inventory_api.db.models.security import User
from inventory_api.db.session import get_async_session
from inventory_api.repositories.security import UserRepository

logger = logging.getLogger(__name__)

ADMIN = "ADMIN"
MANAGER = "MANAGER"
EMPLOYEE = "EMPLOYEE"

MAX_PAGE_SIZE = 100

# OAuth2 bearer (used by docs); login endpoint path referenced here
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


@dataclass
class Principal:
    """The authenticated caller: the reloaded user plus the claims carried by its token."""
    user: User
    tenant_id: int
    role: Optional[str]

    @property
    def id(self) -> int:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN


@dataclass
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# PUBLIC_INTERFACE
def get_page_params(
    page: int = Query(1, ge=1, description="Page number (1-based)"),
    limit: int = Query(10, ge=1, description="Page size; values above 100 are clamped"),
) -> PageParams:
    """Parse page/limit query parameters."""
    return PageParams(page=page, limit=min(limit, MAX_PAGE_SIZE))


# PUBLIC_INTERFACE
async def get_token_payload(token: str = Depends(oauth2_scheme)) -> Dict[str, Any]:
    """
    Decode the bearer token and ensure it is an access token.

    Raises:
        HTTPException: 401 when the token is invalid, expired or of the wrong type.
    """
    try:
        payload = decode_token(token)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if payload.get("type") != "access" or not payload.get("sub") or payload.get("tenant_id") is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return payload


# PUBLIC_INTERFACE
async def get_current_principal(
    request: Request,
    payload: Dict[str, Any] = Depends(get_token_payload),
    session: AsyncSession = Depends(get_async_session),
) -> Principal:
    """
    Resolve the caller from the bearer token.

    The user row is reloaded so deleted users lose access immediately, and the
    tenant/user ids are bound to the logging context of the request.
    """
    try:
        user_id = int(payload["sub"])
        tenant_id = int(payload["tenant_id"])
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = await UserRepository(session).get_by_id(user_id)
    if user is None or user.tenant_id != tenant_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    bind_principal(tenant_id, user_id)
    request.state.tenant_id = str(tenant_id)
    return Principal(user=user, tenant_id=tenant_id, role=payload.get("role"))


# PUBLIC_INTERFACE
def require_roles(*required: str):
    """
    Create a dependency that requires the caller's token to carry one of the given role names.
    """

    async def _dep(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in required:
            logger.info("Role %s denied; requires one of %s", principal.role, ", ".join(required))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return principal

    return _dep
