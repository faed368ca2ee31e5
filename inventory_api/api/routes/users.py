from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import (
    ADMIN,
    PageParams,
    Principal,
    get_current_principal,
    get_page_params,
    require_roles,
)
from inventory_api.db.session import get_async_session
from inventory_api.schemas.auth import (
    AvatarResponse,
    ProfileUpdate,
    UserCreate,
    UserRead,
    UserUpdate,
    user_to_read,
)
from inventory_api.schemas.common import MessageResponse, Page, PageMeta
from inventory_api.services.users import UserService

router = APIRouter(prefix="/users", tags=["Users"])


# PUBLIC_INTERFACE
@router.get("/profile", response_model=UserRead, summary="Get own profile")
async def get_profile(principal: Principal = Depends(get_current_principal)) -> UserRead:
    return user_to_read(principal.user)


# PUBLIC_INTERFACE
@router.patch(
    "/profile",
    response_model=UserRead,
    summary="Update own profile",
    description="Update name, bio, email or password. Tenant and role cannot be changed here.",
)
async def update_profile(
    payload: ProfileUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> UserRead:
    return user_to_read(await UserService(session).update_profile(principal, payload))


# PUBLIC_INTERFACE
@router.post(
    "/profile/avatar",
    response_model=AvatarResponse,
    summary="Upload avatar",
    description="Multipart upload (field 'avatar'). JPEG, PNG, GIF or WEBP up to 5 MiB.",
)
async def upload_avatar(
    avatar: UploadFile = File(...),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> AvatarResponse:
    url = await UserService(session).upload_avatar(principal, avatar)
    return AvatarResponse(avatar_url=url)


# PUBLIC_INTERFACE
@router.delete("/profile/avatar", response_model=MessageResponse, summary="Remove avatar")
async def delete_avatar(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    await UserService(session).delete_avatar(principal)
    return MessageResponse(message="Avatar removed")


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    description="Create a user in the caller's tenant.",
)
async def create_user(
    payload: UserCreate,
    principal: Principal = Depends(require_roles(ADMIN)),
    session: AsyncSession = Depends(get_async_session),
) -> UserRead:
    return user_to_read(await UserService(session).create(principal, payload))


# PUBLIC_INTERFACE
@router.get("", response_model=Page[UserRead], summary="List users of the tenant")
async def list_users(
    page: PageParams = Depends(get_page_params),
    principal: Principal = Depends(require_roles(ADMIN)),
    session: AsyncSession = Depends(get_async_session),
) -> Page[UserRead]:
    rows, total = await UserService(session).list(principal, page)
    return Page[UserRead](
        data=[user_to_read(u) for u in rows],
        meta=PageMeta.build(total=total, page=page.page, limit=page.limit),
    )


# PUBLIC_INTERFACE
@router.get("/{user_id}", response_model=UserRead, summary="Get user")
async def get_user(
    user_id: int,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> UserRead:
    return user_to_read(await UserService(session).get(principal, user_id))


# PUBLIC_INTERFACE
@router.patch(
    "/{user_id}",
    response_model=UserRead,
    summary="Update user",
    description="Update a user of the caller's tenant. Only administrators may change role_id.",
)
async def update_user(
    user_id: int,
    payload: UserUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> UserRead:
    return user_to_read(await UserService(session).update(principal, user_id, payload))


# PUBLIC_INTERFACE
@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete user")
async def delete_user(
    user_id: int,
    principal: Principal = Depends(require_roles(ADMIN)),
    session: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    await UserService(session).delete(principal, user_id)
    return MessageResponse(message="User deleted")
