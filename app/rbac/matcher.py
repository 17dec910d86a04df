"""
Permission matcher: pure decision over a set of held identifiers.

`matches(held, required, context)` returns True when ANY held permission
satisfies the requirement through one of:

1. Exact match            `post.update`     satisfies `post.update`
2. Manage supersedes      `post.manage`     satisfies any `post.*`
3. Own-for-own            `post.update.own` satisfies `post.update.own`
                          only when context.owner_id == context.user_id
4. Broader held           `post.update`     satisfies `post.update.own`
                          with no ownership check

The matcher never raises: empty input, unparseable identifiers and
missing context all evaluate to False.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from app.rbac.permissions import Action, PermissionId


def _normalize_id(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _first_set(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


@dataclass(frozen=True)
class AuthorizationContext:
    """Per-check ownership context.  Only these two fields exist."""

    owner_id: Any = None
    user_id: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "AuthorizationContext":
        """Build from a loose mapping; unrecognized keys are ignored."""
        if not data:
            return cls()
        return cls(
            owner_id=_first_set(data, "owner_id", "ownerId"),
            user_id=_first_set(data, "user_id", "userId"),
        )

    @property
    def is_owner(self) -> bool:
        owner = _normalize_id(self.owner_id)
        user = _normalize_id(self.user_id)
        return owner is not None and user is not None and owner == user

    def with_user(self, user_id: Any) -> "AuthorizationContext":
        """Fill `user_id` only when it is not already set."""
        if self.user_id is not None:
            return self
        return AuthorizationContext(owner_id=self.owner_id, user_id=user_id)


def _satisfies(held: PermissionId, required: PermissionId, context: AuthorizationContext | None) -> bool:
    if held.render() == required.render():
        return True

    if held.resource != required.resource:
        return False

    if held.action == Action.MANAGE:
        return True

    if held.action != required.action:
        return False

    if held.is_own and required.is_own:
        return context is not None and context.is_owner

    return held.condition is None and required.condition is not None


def matches(
    held: Iterable[str | PermissionId] | None,
    required: str | PermissionId,
    context: AuthorizationContext | Mapping[str, Any] | None = None,
) -> bool:
    if not held:
        return False

    target = PermissionId.parse(required)
    if not target.is_valid:
        return False

    if context is not None and not isinstance(context, AuthorizationContext):
        context = AuthorizationContext.from_mapping(context)

    for item in held:
        candidate = PermissionId.parse(item)
        if candidate.is_valid and _satisfies(candidate, target, context):
            return True
    return False
