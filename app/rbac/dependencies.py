"""
RBAC dependencies: permission enforcement for routes.

`require_permission` is a *dependency factory*: call it with one
permission identifier (and optionally an owner extractor) and it returns
a FastAPI dependency that will:

1. Resolve the principal from the bearer token (`get_current_principal`).
2. Reject with 401 when there is none.
3. Compute the resource owner, if an extractor was given.
4. Run `authorize` (load roles + grants, evaluate the matcher).
5. Return the principal, or 403 naming the required permission.

Usage in a route:
    @router.get("/roles", dependencies=[Depends(require_permission("role.read"))])
    async def list_roles(...): ...

Or inject the user object, with ownership:
    async def post_owner(request, db):
        post = await post_service.get_post_by_id(request.path_params["post_id"], db)
        return post.author_id

    @router.patch("/posts/{post_id}")
    async def update(user: User = Depends(require_permission("post.update.own", owner_id=post_owner))): ...
"""

import inspect
import logging
from typing import Any, Awaitable, Callable

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import decode_access_token
from app.models.user import User
from app.rbac.guard import authorize, require_principal
from app.rbac.permissions import PermissionCatalog, PermissionId
from app.rbac.resolver import load_user_with_roles

logger = logging.getLogger("rbac")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

OwnerExtractor = Callable[[Request, AsyncSession], Any | Awaitable[Any]]


def get_catalog(request: Request) -> PermissionCatalog:
    """The process-wide catalog built in `create_app`."""
    return request.app.state.catalog


async def get_current_principal(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Authentication upstream: the user behind the bearer token, or None."""
    if not token:
        return None
    payload = decode_access_token(token)
    if payload is None:
        logger.debug("Rejected invalid or expired token")
        return None
    return await load_user_with_roles(payload.get("sub"), db)


async def require_authenticated(
    principal: User | None = Depends(get_current_principal),
) -> User:
    """Authentication only, no permission check."""
    return require_principal(principal)


class require_permission:
    """
    Dependency factory.

    Can be used as:
        Depends(require_permission("post.create"))
        Depends(require_permission("post.delete.own", owner_id=post_owner))
    """

    def __init__(self, permission: str | PermissionId, *, owner_id: OwnerExtractor | None = None):
        self.permission = str(PermissionId.parse(permission))
        self.owner_id = owner_id

    async def __call__(
        self,
        request: Request,
        principal: User = Depends(require_authenticated),
        db: AsyncSession = Depends(get_db),
    ) -> User:
        owner = None
        if self.owner_id is not None:
            owner = self.owner_id(request, db)
            if inspect.isawaitable(owner):
                owner = await owner
        return await authorize(principal, self.permission, db, owner_id=owner)
