"""
Principal permission resolver.

Effective permissions = permissions of every ACTIVE role the user holds
U the user's direct grants.  Inactive roles contribute nothing, and an
inactive user passes no check at all.

`check_permission` is fail-closed: a missing or inactive principal, or a
storage error while loading it, yields False.  The reason is kept on the
`PermissionDecision` returned by `evaluate_permission` (and logged), so
callers that care can tell a denial from an outage.
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.user import User
from app.rbac.matcher import AuthorizationContext, matches
from app.rbac.permissions import PermissionId

logger = logging.getLogger("rbac")


class DecisionReason(str, enum.Enum):
    GRANTED = "granted"
    DENIED = "denied"
    PRINCIPAL_NOT_FOUND = "principal_not_found"
    PRINCIPAL_INACTIVE = "principal_inactive"
    LOOKUP_FAILED = "lookup_failed"


@dataclass(frozen=True)
class PermissionDecision:
    allowed: bool
    reason: DecisionReason
    permission: str

    def __bool__(self) -> bool:
        return self.allowed


def _coerce_uuid(value: Any) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


async def load_user_with_roles(user_id: Any, db: AsyncSession) -> User | None:
    """Fetch the user with roles eagerly loaded.  Unknown ids give None."""
    key = _coerce_uuid(user_id)
    if key is None:
        return None
    stmt = select(User).options(selectinload(User.roles)).where(User.id == key)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


def collect_effective_permissions(user: User) -> frozenset[str]:
    """Flatten active roles + direct grants into one set of identifiers."""
    codes: set[str] = set()
    for role in user.roles:
        if role.is_active:
            codes.update(role.permissions or ())
    codes.update(user.direct_permissions or ())
    return frozenset(codes)


async def resolve_effective_permissions(user_id: Any, db: AsyncSession) -> frozenset[str]:
    user = await load_user_with_roles(user_id, db)
    if user is None:
        return frozenset()
    return collect_effective_permissions(user)


# Raw driver errors (connection refused, timeouts) reach us unwrapped.
_STORAGE_ERRORS = (SQLAlchemyError, OSError)


async def evaluate_permission(
    user_id: Any,
    required: str | PermissionId,
    context: AuthorizationContext | Mapping[str, Any] | None,
    db: AsyncSession,
) -> PermissionDecision:
    permission = str(PermissionId.parse(required))

    try:
        user = await load_user_with_roles(user_id, db)
        if user is None:
            return PermissionDecision(False, DecisionReason.PRINCIPAL_NOT_FOUND, permission)
        if not user.is_active:
            return PermissionDecision(False, DecisionReason.PRINCIPAL_INACTIVE, permission)

        if not isinstance(context, AuthorizationContext):
            context = AuthorizationContext.from_mapping(context)
        context = context.with_user(user.id)

        granted = collect_effective_permissions(user)
        allowed = matches(granted, required, context)
    except _STORAGE_ERRORS:
        logger.exception(
            "Permission lookup failed for user %s (required: %s), denying",
            user_id,
            permission,
        )
        return PermissionDecision(False, DecisionReason.LOOKUP_FAILED, permission)

    if allowed:
        return PermissionDecision(True, DecisionReason.GRANTED, permission)
    return PermissionDecision(False, DecisionReason.DENIED, permission)


async def check_permission(
    user_id: Any,
    required: str | PermissionId,
    context: AuthorizationContext | Mapping[str, Any] | None,
    db: AsyncSession,
) -> bool:
    decision = await evaluate_permission(user_id, required, context, db)
    return decision.allowed
