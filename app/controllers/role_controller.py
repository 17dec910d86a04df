"""
Role controller: role CRUD, role permissions & the permission catalog.

System roles (seeded at startup) can have their permissions edited but
cannot be renamed or deleted; the service answers 409 for those.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.rbac.dependencies import get_catalog, require_permission
from app.rbac.permissions import PermissionCatalog
from app.schemas import (
    CatalogOut,
    CreateRoleRequest,
    MessageResponse,
    PermissionRequest,
    RoleOut,
    UpdateRoleRequest,
)
from app.services import role_service

router = APIRouter(prefix="/api/roles", tags=["Roles"])


@router.get("", response_model=list[RoleOut])
async def list_roles(
    user: User = Depends(require_permission("role.read")),
    db: AsyncSession = Depends(get_db),
):
    roles = await role_service.list_roles(db)
    return [RoleOut.model_validate(r) for r in roles]


@router.get("/permissions", response_model=CatalogOut)
async def available_permissions(
    user: User = Depends(require_permission("role.read")),
    catalog: PermissionCatalog = Depends(get_catalog),
):
    """Every grantable identifier, plus the bundles used to seed roles."""
    return CatalogOut(
        permissions=list(catalog),
        groups={name: list(perms) for name, perms in catalog.groups.items()},
    )


@router.get("/{role_id}", response_model=RoleOut)
async def get_role(
    role_id: uuid.UUID,
    user: User = Depends(require_permission("role.read")),
    db: AsyncSession = Depends(get_db),
):
    role = await role_service.get_role_by_id(role_id, db)
    return RoleOut.model_validate(role)


@router.post("", response_model=RoleOut, status_code=201)
async def create_role(
    body: CreateRoleRequest,
    user: User = Depends(require_permission("role.create")),
    db: AsyncSession = Depends(get_db),
    catalog: PermissionCatalog = Depends(get_catalog),
):
    role = await role_service.create_role(
        name=body.name,
        description=body.description,
        permissions=body.permissions,
        is_active=body.is_active,
        db=db,
        catalog=catalog,
    )
    return RoleOut.model_validate(role)


@router.patch("/{role_id}", response_model=RoleOut)
async def update_role(
    role_id: uuid.UUID,
    body: UpdateRoleRequest,
    user: User = Depends(require_permission("role.update")),
    db: AsyncSession = Depends(get_db),
):
    role = await role_service.update_role(
        role_id,
        db,
        name=body.name,
        description=body.description,
        is_active=body.is_active,
    )
    return RoleOut.model_validate(role)


@router.delete("/{role_id}", response_model=MessageResponse)
async def delete_role(
    role_id: uuid.UUID,
    user: User = Depends(require_permission("role.delete")),
    db: AsyncSession = Depends(get_db),
):
    await role_service.delete_role(role_id, db)
    return MessageResponse(detail="Role deleted successfully")


@router.post("/{role_id}/permissions", response_model=RoleOut)
async def add_permission(
    role_id: uuid.UUID,
    body: PermissionRequest,
    user: User = Depends(require_permission("role.update")),
    db: AsyncSession = Depends(get_db),
    catalog: PermissionCatalog = Depends(get_catalog),
):
    role = await role_service.add_permission_to_role(role_id, body.permission, db, catalog)
    return RoleOut.model_validate(role)


@router.delete("/{role_id}/permissions/{permission}", response_model=RoleOut)
async def remove_permission(
    role_id: uuid.UUID,
    permission: str,
    user: User = Depends(require_permission("role.update")),
    db: AsyncSession = Depends(get_db),
    catalog: PermissionCatalog = Depends(get_catalog),
):
    role = await role_service.remove_permission_from_role(role_id, permission, db, catalog)
    return RoleOut.model_validate(role)
