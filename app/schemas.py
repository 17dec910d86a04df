"""
Pydantic schemas for request / response serialization.

Kept in a single file for now; split per-domain when it grows.
Schemas are deliberately decoupled from SQLAlchemy models so the
API surface can evolve independently of the DB layer.

Permission strings are NOT validated here: the catalog check happens in
the services so that an unknown identifier surfaces as `InvalidPermission`
rather than a generic schema error.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from app.models.post import PostStatus


# ── Auth ─────────────────────────────────────────────────────────────
class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    age: int | None = Field(default=None, ge=1, le=120)


class LoginRequest(BaseModel):
    email: str
    password: str


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    roles: list[str]


# ── Role ─────────────────────────────────────────────────────────────
class RoleOut(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    permissions: list[str] = []
    is_active: bool
    is_system: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class RoleSummary(BaseModel):
    id: uuid.UUID
    name: str
    is_active: bool

    model_config = {"from_attributes": True}


class CreateRoleRequest(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    description: str | None = None
    permissions: list[str] = []
    is_active: bool = True


class UpdateRoleRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=64)
    description: str | None = None
    is_active: bool | None = None


class PermissionRequest(BaseModel):
    permission: str


class CatalogOut(BaseModel):
    permissions: list[str]
    groups: dict[str, list[str]]


# ── User ─────────────────────────────────────────────────────────────
class UserOut(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    age: int | None = None
    is_active: bool
    roles: list[RoleSummary] = []
    direct_permissions: list[str] = []
    last_login_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class UpdateUserRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    email: EmailStr | None = None
    age: int | None = Field(default=None, ge=1, le=120)
    is_active: bool | None = None


class PermissionsOut(BaseModel):
    user_id: uuid.UUID
    permissions: list[str]


# ── Post ─────────────────────────────────────────────────────────────
class CreatePostRequest(BaseModel):
    title: str = Field(min_length=1, max_length=256)
    content: str = Field(min_length=1)
    status: PostStatus = PostStatus.PUBLISHED
    tags: list[str] = []
    is_public: bool = True
    author_id: uuid.UUID | None = None


class UpdatePostRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=256)
    content: str | None = Field(default=None, min_length=1)
    status: PostStatus | None = None
    tags: list[str] | None = None
    is_public: bool | None = None


class ModeratePostRequest(BaseModel):
    status: PostStatus


class PostOut(BaseModel):
    id: uuid.UUID
    title: str
    content: str
    author_id: uuid.UUID
    status: PostStatus
    tags: list[str] = []
    is_public: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ── Generic ──────────────────────────────────────────────────────────
class MessageResponse(BaseModel):
    detail: str
