from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import Principal, get_current_principal
from inventory_api.db.session import get_async_session
from inventory_api.schemas.auth import (
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenPair,
    UserRead,
    user_to_read,
)
from inventory_api.schemas.common import MessageResponse
from inventory_api.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register business",
    description="Create a new tenant named after the business and its first ADMIN user, and sign that user in.",
)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_async_session),
) -> RegisterResponse:
    """Self-service signup."""
    user, pair = await AuthService(session).register(payload)
    return RegisterResponse(user=user_to_read(user), **pair.model_dump())


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=TokenPair,
    summary="Login",
    description="Authenticate with email and password and receive access/refresh tokens.",
)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_async_session),
) -> TokenPair:
    """Authenticate user and issue tokens."""
    return await AuthService(session).login(payload)


# PUBLIC_INTERFACE
@router.post(
    "/refresh",
    response_model=TokenPair,
    summary="Refresh tokens",
    description=(
        "Rotate a refresh token: the presented token is revoked and a new pair is issued. "
        "Reusing a revoked token revokes every active session of the user."
    ),
)
async def refresh_tokens(
    payload: RefreshRequest,
    session: AsyncSession = Depends(get_async_session),
) -> TokenPair:
    return await AuthService(session).refresh(payload.refresh_token)


# PUBLIC_INTERFACE
@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout",
    description="Revoke the given refresh token, or every active refresh token of the caller when none is given.",
)
async def logout(
    payload: Optional[LogoutRequest] = Body(default=None),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    await AuthService(session).logout(principal, payload.refresh_token if payload else None)
    return MessageResponse(message="Logged out")


# PUBLIC_INTERFACE
@router.get(
    "/me",
    response_model=UserRead,
    summary="Read current user",
    description="Return the current authenticated user and role.",
)
async def read_current_user(principal: Principal = Depends(get_current_principal)) -> UserRead:
    return user_to_read(principal.user)
