from __future__ import annotations

import logging
import secrets
import time
from pathlib import Path
from typing import List, Optional, Tuple

from fastapi import HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.deps import PageParams, Principal
from inventory_api.core.security import get_password_hash
from inventory_api.core.settings import get_app_settings
from inventory_api.db.models.security import User
from inventory_api.repositories.security import RoleRepository, UserRepository
from inventory_api.schemas.auth import ProfileUpdate, UserCreate, UserUpdate
from inventory_api.services.base import BaseService

logger = logging.getLogger(__name__)

AVATAR_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
AVATAR_URL_PREFIX = "/uploads/avatars/"


def avatars_dir() -> Path:
    return Path(get_app_settings().UPLOADS_DIR) / "avatars"


def _remove_avatar_file(avatar_url: Optional[str]) -> None:
    if not avatar_url or not avatar_url.startswith(AVATAR_URL_PREFIX):
        return
    path = avatars_dir() / Path(avatar_url).name
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove avatar file %s", path)


class UserService(BaseService):
    """User administration and self-service profile management."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.users = UserRepository(session)
        self.roles = RoleRepository(session)

    async def _ensure_email_free(self, email: str, exclude_id: int | None = None) -> None:
        other = await self.users.get_by_email(email)
        if other is not None and other.id != exclude_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    async def _get_in_tenant(self, principal: Principal, user_id: int) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        if user.tenant_id != principal.tenant_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access to this user is not allowed")
        return user

    async def _assign_role(self, user: User, role_id: int) -> None:
        role = await self.roles.get_by_id(role_id)
        if role is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown role")
        user.role_id = role.id
        user.role = role

    async def _apply_common(self, user: User, *, email, password, full_name, bio) -> None:
        if email is not None and email != user.email:
            await self._ensure_email_free(email, exclude_id=user.id)
            user.email = email
        if password is not None:
            user.password_hash = get_password_hash(password)
        if full_name is not None:
            user.full_name = full_name
        if bio is not None:
            user.bio = bio

    # PUBLIC_INTERFACE
    async def update_profile(self, principal: Principal, payload: ProfileUpdate) -> User:
        user = principal.user
        await self._apply_common(
            user, email=payload.email, password=payload.password, full_name=payload.full_name, bio=payload.bio
        )
        await self.users.commit()
        return user

    # PUBLIC_INTERFACE
    async def upload_avatar(self, principal: Principal, upload: UploadFile) -> str:
        """
        Store a new avatar image for the caller and return its public URL.

        Only jpeg/png/gif/webp are accepted, up to MAX_AVATAR_BYTES. The previous
        avatar file is removed.
        """
        settings = get_app_settings()
        ext = AVATAR_TYPES.get((upload.content_type or "").lower())
        if ext is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only JPEG, PNG, GIF and WEBP images are allowed",
            )
        content = await upload.read(settings.MAX_AVATAR_BYTES + 1)
        if len(content) > settings.MAX_AVATAR_BYTES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Avatar file is too large")

        suffix = Path(upload.filename or "").suffix.lower()
        if suffix not in AVATAR_TYPES.values() and suffix != ".jpeg":
            suffix = ext
        filename = f"avatar-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"
        target_dir = avatars_dir()
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / filename).write_bytes(content)

        user = principal.user
        previous = user.avatar_url
        user.avatar_url = f"{AVATAR_URL_PREFIX}{filename}"
        await self.users.commit()
        _remove_avatar_file(previous)
        logger.info("Stored avatar %s for user id=%s", filename, user.id)
        return user.avatar_url

    # PUBLIC_INTERFACE
    async def delete_avatar(self, principal: Principal) -> None:
        user = principal.user
        previous = user.avatar_url
        user.avatar_url = None
        await self.users.commit()
        _remove_avatar_file(previous)

    # PUBLIC_INTERFACE
    async def create(self, principal: Principal, payload: UserCreate) -> User:
        """Create a user in the caller's tenant."""
        await self._ensure_email_free(payload.email)
        user = User(
            tenant_id=principal.tenant_id,
            email=payload.email,
            full_name=payload.full_name,
            password_hash=get_password_hash(payload.password),
        )
        await self._assign_role(user, payload.role_id)
        await self.users.add(user)
        await self.users.commit()
        logger.info("Created user id=%s", user.id)
        return user

    # PUBLIC_INTERFACE
    async def list(self, principal: Principal, page: PageParams) -> Tuple[List[User], int]:
        return await self.users.list_for_tenant(principal.tenant_id, limit=page.limit, offset=page.offset)

    # PUBLIC_INTERFACE
    async def get(self, principal: Principal, user_id: int) -> User:
        return await self._get_in_tenant(principal, user_id)

    # PUBLIC_INTERFACE
    async def update(self, principal: Principal, user_id: int, payload: UserUpdate) -> User:
        user = await self._get_in_tenant(principal, user_id)
        if payload.role_id is not None and payload.role_id != user.role_id:
            if not principal.is_admin:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN, detail="Only administrators can change roles"
                )
            await self._assign_role(user, payload.role_id)
        await self._apply_common(
            user, email=payload.email, password=payload.password, full_name=payload.full_name, bio=payload.bio
        )
        await self.users.commit()
        return user

    # PUBLIC_INTERFACE
    async def delete(self, principal: Principal, user_id: int) -> None:
        user = await self._get_in_tenant(principal, user_id)
        if user.id == principal.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot delete yourself")
        avatar = user.avatar_url
        await self.users.delete(user)
        await self.users.commit()
        _remove_avatar_file(avatar)
        logger.info("Deleted user id=%s", user_id)
