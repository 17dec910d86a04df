"""
Role service: role CRUD & role permission administration.

Rules enforced here (not in the matcher):
- Every permission granted or revoked must be in the catalog; anything
  else is rejected before the role is even fetched.
- Adding a permission the role already holds, or removing one it does
  not hold, is a silent no-op.
- System roles can be edited but never renamed or deleted.
"""

import logging
import uuid
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import Conflict, NotFound, SystemRoleViolation
from app.models.role import Role
from app.rbac.permissions import PermissionCatalog

logger = logging.getLogger(__name__)


def _unique(permissions: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(permissions))


async def find_role_by_id(role_id: uuid.UUID, db: AsyncSession) -> Role | None:
    return await db.get(Role, role_id)


async def get_role_by_id(role_id: uuid.UUID, db: AsyncSession) -> Role:
    role = await find_role_by_id(role_id, db)
    if role is None:
        raise NotFound("Role", role_id)
    return role


async def get_role_by_name(name: str, db: AsyncSession) -> Role | None:
    result = await db.execute(select(Role).where(Role.name == name))
    return result.scalar_one_or_none()


async def list_roles(db: AsyncSession) -> list[Role]:
    result = await db.execute(select(Role).order_by(Role.name))
    return list(result.scalars().all())


async def create_role(
    name: str,
    db: AsyncSession,
    catalog: PermissionCatalog,
    description: str | None = None,
    permissions: Iterable[str] = (),
    is_active: bool = True,
) -> Role:
    validated = [catalog.validate(p) for p in permissions]

    if await get_role_by_name(name, db) is not None:
        raise Conflict("Role with this name already exists")

    role = Role(
        id=uuid.uuid4(),
        name=name,
        description=description,
        permissions=_unique(validated),
        is_active=is_active,
        is_system=False,
    )
    db.add(role)
    await db.flush()
    logger.info("Created role %s with %d permissions", name, len(role.permissions))
    return role


async def update_role(
    role_id: uuid.UUID,
    db: AsyncSession,
    name: str | None = None,
    description: str | None = None,
    is_active: bool | None = None,
) -> Role:
    role = await get_role_by_id(role_id, db)

    if name is not None and name != role.name:
        if role.is_system:
            raise SystemRoleViolation("Cannot rename system roles")
        if await get_role_by_name(name, db) is not None:
            raise Conflict("Role with this name already exists")
        role.name = name
    if description is not None:
        role.description = description
    if is_active is not None:
        role.is_active = is_active

    await db.flush()
    return role


async def delete_role(role_id: uuid.UUID, db: AsyncSession) -> None:
    role = await get_role_by_id(role_id, db)
    if role.is_system:
        raise SystemRoleViolation("Cannot delete system roles")
    await db.delete(role)
    await db.flush()
    logger.info("Deleted role %s", role.name)


async def add_permission_to_role(
    role_id: uuid.UUID,
    permission: str,
    db: AsyncSession,
    catalog: PermissionCatalog,
) -> Role:
    permission = catalog.validate(permission)
    role = await get_role_by_id(role_id, db)

    if permission not in role.permissions:
        role.permissions = [*role.permissions, permission]
        await db.flush()
        logger.info("Added %s to role %s", permission, role.name)
    return role


async def remove_permission_from_role(
    role_id: uuid.UUID,
    permission: str,
    db: AsyncSession,
    catalog: PermissionCatalog,
) -> Role:
    permission = catalog.validate(permission)
    role = await get_role_by_id(role_id, db)

    if permission in role.permissions:
        role.permissions = [p for p in role.permissions if p != permission]
        await db.flush()
        logger.info("Removed %s from role %s", permission, role.name)
    return role
