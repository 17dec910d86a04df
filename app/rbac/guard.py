"""
Authorization guard: framework-free.

Per invocation:
    no principal          -> NotAuthenticated (permissions never resolved)
    principal, check      -> build AuthorizationContext, evaluate_permission
    granted               -> run the operation, result/error untouched
    denied                -> PermissionDenied(<required permission>)

`login_required` and `permission_required` are independent decorators,
so an operation can demand authentication alone or authentication plus
one permission.  The FastAPI dependencies in `app.rbac.dependencies`
resolve to the same `authorize` call.

Example:
    @permission_required("post.update.own", owner_id=lambda post, **_: post.author_id)
    async def rename(post, title, *, principal, db): ...
"""

import functools
import inspect
import logging
from typing import Any, Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotAuthenticated, PermissionDenied
from app.models.user import User
from app.rbac.matcher import AuthorizationContext
from app.rbac.permissions import PermissionId
from app.rbac.resolver import DecisionReason, evaluate_permission

logger = logging.getLogger("rbac")

OwnerExtractor = Callable[..., Any | Awaitable[Any]]


def require_principal(principal: User | None) -> User:
    if principal is None:
        raise NotAuthenticated()
    return principal


async def authorize(
    principal: User | None,
    permission: str | PermissionId,
    db: AsyncSession,
    *,
    owner_id: Any = None,
) -> User:
    """Return the principal if it satisfies `permission`, else raise."""
    user = require_principal(principal)
    context = AuthorizationContext(owner_id=owner_id, user_id=user.id)

    decision = await evaluate_permission(user.id, permission, context, db)
    if decision.allowed:
        return user

    if decision.reason is DecisionReason.LOOKUP_FAILED:
        logger.error("Denying %s to user %s: permission lookup failed", decision.permission, user.id)
    else:
        logger.warning(
            "Permission denied for user %s, required: %s (%s)",
            user.id,
            decision.permission,
            decision.reason.value,
        )
    raise PermissionDenied(decision.permission)


async def _resolve_owner(extractor: OwnerExtractor | None, *args: Any, **kwargs: Any) -> Any:
    if extractor is None:
        return None
    owner = extractor(*args, **kwargs)
    if inspect.isawaitable(owner):
        owner = await owner
    return owner


def login_required(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
    """Reject calls whose `principal` keyword argument is None."""

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        require_principal(kwargs.get("principal"))
        return await func(*args, **kwargs)

    return wrapper


def permission_required(
    permission: str | PermissionId,
    *,
    owner_id: OwnerExtractor | None = None,
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """Guard an async operation taking `principal` and `db` keyword arguments.

    `owner_id` receives the operation's own arguments and returns the
    owner of the targeted resource (or an awaitable of it).
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            principal = require_principal(kwargs.get("principal"))
            owner = await _resolve_owner(owner_id, *args, **kwargs)
            await authorize(principal, permission, kwargs["db"], owner_id=owner)
            return await func(*args, **kwargs)

        return wrapper

    return decorator
