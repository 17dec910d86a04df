"""
User controller: profiles, role membership & direct grants.

Every route uses `Depends(require_permission(...))` or
`require_authenticated` for enforcement.  Controllers are THIN: they
delegate to services and return schemas.

Self-service rules:
    GET   /users/{id}              own profile, or user.read
    PATCH /users/{id}              user.update.own with the path id as
                                   owner (user.update / user.manage
                                   holders may edit anyone)
"""

import uuid

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import NotFound
from app.models.user import User
from app.rbac.dependencies import get_catalog, require_authenticated, require_permission
from app.rbac.guard import authorize
from app.rbac.permissions import PermissionCatalog
from app.schemas import MessageResponse, PermissionRequest, PermissionsOut, UpdateUserRequest, UserOut
from app.services import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


def _path_user_id(request: Request, db: AsyncSession) -> uuid.UUID:
    """Owner extractor: a profile is owned by the user it describes."""
    try:
        return uuid.UUID(str(request.path_params["user_id"]))
    except (KeyError, ValueError):
        raise NotFound("User")


@router.get("", response_model=list[UserOut])
async def list_users(
    user: User = Depends(require_permission("user.read")),
    db: AsyncSession = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    users = await user_service.list_users(db, skip, limit)
    return [UserOut.model_validate(u) for u in users]


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: uuid.UUID,
    user: User = Depends(require_authenticated),
    db: AsyncSession = Depends(get_db),
):
    if user_id != user.id:
        await authorize(user, "user.read", db)
    target = await user_service.get_user_by_id(user_id, db)
    return UserOut.model_validate(target)


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: uuid.UUID,
    body: UpdateUserRequest,
    user: User = Depends(require_permission("user.update.own", owner_id=_path_user_id)),
    db: AsyncSession = Depends(get_db),
):
    target = await user_service.update_user(
        user_id=user_id,
        db=db,
        acting_user_id=user.id,
        name=body.name,
        email=body.email,
        age=body.age,
        is_active=body.is_active,
    )
    return UserOut.model_validate(target)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: uuid.UUID,
    user: User = Depends(require_permission("user.delete")),
    db: AsyncSession = Depends(get_db),
):
    await user_service.delete_user(user_id, db, acting_user_id=user.id)
    return MessageResponse(detail="User deleted successfully")


@router.get("/{user_id}/permissions", response_model=PermissionsOut)
async def get_user_permissions(
    user_id: uuid.UUID,
    user: User = Depends(require_authenticated),
    db: AsyncSession = Depends(get_db),
):
    if user_id != user.id:
        await authorize(user, "user.read", db)
    permissions = await user_service.get_user_permissions(user_id, db)
    return PermissionsOut(user_id=user_id, permissions=permissions)


# ── Role membership ─────────────────────────────────────────────────
@router.post("/{user_id}/roles/{role_id}", response_model=UserOut)
async def assign_role(
    user_id: uuid.UUID,
    role_id: uuid.UUID,
    user: User = Depends(require_permission("user.manage")),
    db: AsyncSession = Depends(get_db),
):
    target = await user_service.assign_role_to_user(user_id, role_id, db)
    return UserOut.model_validate(target)


@router.delete("/{user_id}/roles/{role_id}", response_model=UserOut)
async def remove_role(
    user_id: uuid.UUID,
    role_id: uuid.UUID,
    user: User = Depends(require_permission("user.manage")),
    db: AsyncSession = Depends(get_db),
):
    target = await user_service.remove_role_from_user(user_id, role_id, db)
    return UserOut.model_validate(target)


# ── Direct grants ────────────────────────────────────────────────────
@router.post("/{user_id}/permissions", response_model=UserOut)
async def assign_permission(
    user_id: uuid.UUID,
    body: PermissionRequest,
    user: User = Depends(require_permission("user.manage")),
    db: AsyncSession = Depends(get_db),
    catalog: PermissionCatalog = Depends(get_catalog),
):
    target = await user_service.assign_permission_to_user(user_id, body.permission, db, catalog)
    return UserOut.model_validate(target)


@router.delete("/{user_id}/permissions/{permission}", response_model=UserOut)
async def remove_permission(
    user_id: uuid.UUID,
    permission: str,
    user: User = Depends(require_permission("user.manage")),
    db: AsyncSession = Depends(get_db),
    catalog: PermissionCatalog = Depends(get_catalog),
):
    target = await user_service.remove_permission_from_user(user_id, permission, db, catalog)
    return UserOut.model_validate(target)
