"""Shared pytest fixtures.

Every test gets a fresh in-memory SQLite database (aiosqlite) built with
`create_all`.  HTTP tests run the real app through httpx's ASGI
transport with `get_db` pointed at the same session the test uses, so
fixtures and requests see one identity map.
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ["SEED_ON_STARTUP"] = "false"

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import get_db
from app.core.security import create_access_token, hash_password
from app.main import create_app
from app.models import Base, Role, User
from app.rbac.permission_seed import seed
from app.rbac.permissions import PermissionCatalog, build_catalog
from app.services import role_service

PASSWORD = "secret123"


@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(PASSWORD)


@pytest.fixture()
def catalog() -> PermissionCatalog:
    return build_catalog()


@pytest_asyncio.fixture()
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def db(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def system_roles(db: AsyncSession, catalog: PermissionCatalog) -> dict[str, Role]:
    """The seeded `user` / `moderator` / `admin` roles, by name."""
    await seed(db, catalog)
    return {role.name: role for role in await role_service.list_roles(db)}


@pytest.fixture()
def make_role(db: AsyncSession) -> Callable[..., Awaitable[Role]]:
    async def _make(
        name: str | None = None,
        permissions: Iterable[str] = (),
        *,
        is_active: bool = True,
        is_system: bool = False,
    ) -> Role:
        role = Role(
            id=uuid.uuid4(),
            name=name or f"role-{uuid.uuid4().hex[:8]}",
            permissions=list(permissions),
            is_active=is_active,
            is_system=is_system,
        )
        db.add(role)
        await db.commit()
        return role

    return _make


@pytest.fixture()
def make_user(db: AsyncSession, password_hash: str) -> Callable[..., Awaitable[User]]:
    async def _make(
        *,
        roles: Iterable[Role] = (),
        direct: Iterable[str] = (),
        is_active: bool = True,
        email: str | None = None,
        name: str = "Test User",
    ) -> User:
        user = User(
            id=uuid.uuid4(),
            email=email or f"{uuid.uuid4().hex[:10]}@example.com",
            name=name,
            password_hash=password_hash,
            direct_permissions=list(direct),
            is_active=is_active,
            roles=list(roles),
        )
        db.add(user)
        await db.commit()
        return user

    return _make


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def app(db: AsyncSession) -> FastAPI:
    application = create_app()

    async def _override_get_db() -> AsyncIterator[AsyncSession]:
        yield db
        await db.commit()

    application.dependency_overrides[get_db] = _override_get_db
    return application


@pytest_asyncio.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http


@pytest.fixture()
def headers_for() -> Callable[[User], dict[str, str]]:
    return auth_headers
