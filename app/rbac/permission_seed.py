"""
System role seeding.

Creates the three system roles from the catalog's permission groups.
It is IDEMPOTENT: roles that already exist are left exactly as they
are, so permissions an admin added or removed later survive restarts.

    user       -> USER_BASIC  (own posts, own profile)
    moderator  -> MODERATOR   (any post, read users)
    admin      -> ADMIN       (the whole catalog)

Usage:
    python -m app.rbac.permission_seed
"""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.models import Base
from app.models.role import Role
from app.rbac.permissions import ADMIN, MODERATOR, USER_BASIC, PermissionCatalog, build_catalog

logger = logging.getLogger(__name__)

# role name -> (permission group, description)
SYSTEM_ROLES: dict[str, tuple[str, str]] = {
    "user": (USER_BASIC, "Basic user role"),
    "moderator": (MODERATOR, "Content moderator role"),
    "admin": (ADMIN, "System administrator role"),
}


async def seed(session: AsyncSession, catalog: PermissionCatalog) -> list[Role]:
    """Create missing system roles.  Returns the roles created."""
    existing = (await session.execute(select(Role.name))).scalars().all()
    existing_names = set(existing)

    created: list[Role] = []
    for name, (group, description) in SYSTEM_ROLES.items():
        if name in existing_names:
            continue
        role = Role(
            name=name,
            description=description,
            permissions=list(catalog.group(group)),
            is_system=True,
        )
        session.add(role)
        created.append(role)
        logger.info("Seeded role %s with %d permissions", name, len(role.permissions))

    await session.commit()
    return created


async def main() -> None:
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async_session = async_sessionmaker(engine, expire_on_commit=False)
    async with async_session() as session:
        await seed(session, build_catalog())
    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
