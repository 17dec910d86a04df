"""
Bootstrap script: creates the first admin user.

Usage:
    python -m app.scripts.create_admin

Self-registration only ever hands out the default `user` role, so the
first account holding `admin` has to come from here.  Running it for an
email that already exists promotes that account instead.
"""

import asyncio
import getpass
import uuid

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.core.security import hash_password
from app.models.user import User
from app.rbac.permission_seed import seed
from app.rbac.permissions import build_catalog
from app.services import role_service, user_service

ADMIN_ROLE_NAME = "admin"


async def bootstrap_admin(session: AsyncSession, email: str, name: str, password: str) -> tuple[User, bool]:
    """Create (or promote) an admin.  Returns the user and whether it is new."""
    await seed(session, build_catalog())
    admin_role = await role_service.get_role_by_name(ADMIN_ROLE_NAME, session)

    user = await user_service.get_user_by_email(email, session)
    created = user is None
    if created:
        user = User(
            id=uuid.uuid4(),
            email=email.strip().lower(),
            name=name,
            password_hash=hash_password(password),
        )
        session.add(user)
        user.roles = [admin_role]
    elif all(r.id != admin_role.id for r in user.roles):
        user.roles = [*user.roles, admin_role]

    await session.commit()
    return user, created


async def create_admin() -> None:
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async with session_factory() as session:
        # ── Collect input ────────────────────────────────────────────
        print("\nPosts RBAC Backend: first admin setup\n")
        email = input("  Admin email: ").strip()
        name = input("  Full name:   ").strip()
        password = getpass.getpass("  Password:    ")
        confirm = getpass.getpass("  Confirm:     ")

        if password != confirm:
            print("\nPasswords do not match.")
            await engine.dispose()
            return

        if not email or not name or not password:
            print("\nAll fields are required.")
            await engine.dispose()
            return

        user, created = await bootstrap_admin(session, email, name, password)

        print("\nAdmin user created." if created else "\nExisting user promoted to admin.")
        print(f"    ID:    {user.id}")
        print(f"    Email: {user.email}")
        print("\n   You can now log in via POST /api/auth/login\n")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(create_admin())
