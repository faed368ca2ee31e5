from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class TokenPair(BaseModel):
    """Access and refresh tokens."""
    token_type: str = Field("bearer", description="Token type, typically 'bearer'")
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")


class LoginRequest(BaseModel):
    """Credentials for password login."""
    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., min_length=1, description="User password")


class RefreshRequest(BaseModel):
    """Request to rotate a refresh token."""
    refresh_token: str = Field(..., description="Refresh token")


class LogoutRequest(BaseModel):
    """Optional refresh token to revoke; without it every session of the caller is ended."""
    refresh_token: Optional[str] = Field(None, description="Refresh token to revoke")


class RegisterRequest(BaseModel):
    """Self-service signup: creates a business (tenant) and its first admin."""
    business_name: str = Field(..., min_length=1, description="Business (tenant) name")
    full_name: str = Field(..., min_length=1, description="Full name of the admin user")
    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., min_length=8, description="User password")


class UserRead(BaseModel):
    """User read model."""
    id: int = Field(..., description="User ID")
    tenant_id: int = Field(..., description="Owning tenant")
    email: EmailStr = Field(..., description="User email")
    full_name: Optional[str] = Field(None)
    bio: Optional[str] = Field(None)
    avatar_url: Optional[str] = Field(None)
    role_id: int = Field(..., description="Role ID")
    role: Optional[str] = Field(None, description="Role name")
    last_login: Optional[datetime] = Field(None)
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")


class RegisterResponse(TokenPair):
    """Newly registered user with its first token pair."""
    user: UserRead


class UserCreate(BaseModel):
    """Admin create user payload."""
    email: EmailStr = Field(..., description="Email")
    password: str = Field(..., min_length=8, description="Password")
    full_name: Optional[str] = Field(None)
    role_id: int = Field(..., description="Role to assign")


class UserUpdate(BaseModel):
    """Update user payload. Only administrators may change role_id."""
    email: Optional[EmailStr] = Field(None)
    password: Optional[str] = Field(None, min_length=8)
    full_name: Optional[str] = Field(None)
    bio: Optional[str] = Field(None)
    role_id: Optional[int] = Field(None)


class ProfileUpdate(BaseModel):
    """Self-service profile changes; tenant and role are not editable here."""
    full_name: Optional[str] = Field(None)
    bio: Optional[str] = Field(None)
    email: Optional[EmailStr] = Field(None)
    password: Optional[str] = Field(None, min_length=8)


class AvatarResponse(BaseModel):
    avatar_url: Optional[str] = Field(None, description="Public URL of the avatar")


# PUBLIC_INTERFACE
def user_to_read(user) -> UserRead:
    """Build the API representation of a User row (role is exposed by name)."""
    return UserRead(
        id=user.id,
        tenant_id=user.tenant_id,
        email=user.email,
        full_name=user.full_name,
        bio=user.bio,
        avatar_url=user.avatar_url,
        role_id=user.role_id,
        role=user.role.name if user.role is not None else None,
        last_login=user.last_login,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )
