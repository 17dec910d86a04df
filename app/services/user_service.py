"""
User service: profile CRUD, role membership & direct grants.

Role membership and direct grants follow the same idempotent pattern
as role permissions: assigning what is already there, or removing what
is not, changes nothing and raises nothing.  Missing users / roles and
permissions outside the catalog do raise.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequest, Conflict, NotFound
from app.models.user import User
from app.rbac.permissions import PermissionCatalog
from app.rbac.resolver import collect_effective_permissions
from app.services import role_service

logger = logging.getLogger(__name__)


async def get_user_by_id(user_id: uuid.UUID, db: AsyncSession) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User", user_id)
    return user


async def get_user_by_email(email: str, db: AsyncSession) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession, skip: int = 0, limit: int = 50) -> list[User]:
    stmt = select(User).order_by(User.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_user(
    user_id: uuid.UUID,
    db: AsyncSession,
    acting_user_id: uuid.UUID,
    name: str | None = None,
    email: str | None = None,
    age: int | None = None,
    is_active: bool | None = None,
) -> User:
    if user_id == acting_user_id and is_active is False:
        raise BadRequest("You cannot deactivate your own account")

    user = await get_user_by_id(user_id, db)

    if email is not None:
        email = email.strip().lower()
        if email != user.email:
            if await get_user_by_email(email, db) is not None:
                raise Conflict("User with this email already exists")
            user.email = email
    if name is not None:
        user.name = name
    if age is not None:
        user.age = age
    if is_active is not None:
        user.is_active = is_active

    await db.flush()
    return user


async def delete_user(user_id: uuid.UUID, db: AsyncSession, acting_user_id: uuid.UUID) -> None:
    if user_id == acting_user_id:
        raise BadRequest("You cannot delete your own account")
    user = await get_user_by_id(user_id, db)
    await db.delete(user)
    await db.flush()
    logger.info("Deleted user %s", user.email)


async def get_user_permissions(user_id: uuid.UUID, db: AsyncSession) -> list[str]:
    """Effective permissions, sorted for display."""
    user = await get_user_by_id(user_id, db)
    return sorted(collect_effective_permissions(user))


# ── Direct grants ────────────────────────────────────────────────────


async def assign_permission_to_user(
    user_id: uuid.UUID,
    permission: str,
    db: AsyncSession,
    catalog: PermissionCatalog,
) -> User:
    permission = catalog.validate(permission)
    user = await get_user_by_id(user_id, db)

    if permission not in user.direct_permissions:
        user.direct_permissions = [*user.direct_permissions, permission]
        await db.flush()
        logger.info("Granted %s directly to user %s", permission, user.id)
    return user


async def remove_permission_from_user(
    user_id: uuid.UUID,
    permission: str,
    db: AsyncSession,
    catalog: PermissionCatalog,
) -> User:
    permission = catalog.validate(permission)
    user = await get_user_by_id(user_id, db)

    if permission in user.direct_permissions:
        user.direct_permissions = [p for p in user.direct_permissions if p != permission]
        await db.flush()
        logger.info("Revoked direct %s from user %s", permission, user.id)
    return user


# ── Role membership ─────────────────────────────────────────────────


async def assign_role_to_user(user_id: uuid.UUID, role_id: uuid.UUID, db: AsyncSession) -> User:
    user = await get_user_by_id(user_id, db)
    role = await role_service.get_role_by_id(role_id, db)

    if all(r.id != role.id for r in user.roles):
        user.roles.append(role)
        await db.flush()
        logger.info("Assigned role %s to user %s", role.name, user.id)
    return user


async def remove_role_from_user(user_id: uuid.UUID, role_id: uuid.UUID, db: AsyncSession) -> User:
    user = await get_user_by_id(user_id, db)

    remaining = [r for r in user.roles if r.id != role_id]
    if len(remaining) != len(user.roles):
        user.roles = remaining
        await db.flush()
        logger.info("Removed role %s from user %s", role_id, user.id)
    return user
