"""
Permission vocabulary.

A permission identifier is a dotted string `resource.action[.own]`, e.g.
`post.update.own`.  `PermissionId` is its parsed form.  Parsing is
total: a malformed string becomes a `PermissionId` with `is_valid`
False, which the matcher treats as a non-match.

The catalog of valid identifiers and the seeding groups are built once
by `build_catalog()` at startup and handed to whoever needs them
(`app.state.catalog`, see `app.rbac.dependencies.get_catalog`).

Usage:
    catalog = build_catalog()
    "post.update.own" in catalog            # True
    PermissionId.parse("post.update.own")   # resource=POST, action=UPDATE, condition="own"
"""

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from app.core.exceptions import InvalidPermission

OWN = "own"


class Resource(str, enum.Enum):
    USER = "user"
    POST = "post"
    ROLE = "role"
    SYSTEM = "system"


class Action(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"
    MODERATE = "moderate"


def _lookup(enum_cls: type[enum.Enum], value: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class PermissionId:
    """Structured permission identifier.

    `resource` / `action` are None when the raw segment is unknown.
    `raw` keeps the original text so invalid input still renders.
    """

    resource: Resource | None
    action: Action | None
    condition: str | None = None
    raw: str = field(default="", compare=False)

    @classmethod
    def of(cls, resource: Resource, action: Action, condition: str | None = None) -> "PermissionId":
        ident = cls(resource, action, condition)
        return cls(resource, action, condition, raw=ident.render())

    @classmethod
    def parse(cls, text: Any) -> "PermissionId":
        if isinstance(text, PermissionId):
            return text
        if not isinstance(text, str):
            return cls(None, None, None, raw=repr(text))

        parts = text.split(".")
        if len(parts) not in (2, 3):
            return cls(None, None, None, raw=text)

        resource = _lookup(Resource, parts[0])
        action = _lookup(Action, parts[1])
        condition = parts[2] if len(parts) == 3 else None
        return cls(resource, action, condition, raw=text)

    @property
    def is_valid(self) -> bool:
        return (
            self.resource is not None
            and self.action is not None
            and self.condition in (None, OWN)
        )

    @property
    def is_own(self) -> bool:
        return self.condition == OWN

    def render(self) -> str:
        if not self.is_valid:
            return self.raw
        base = f"{self.resource.value}.{self.action.value}"
        return f"{base}.{self.condition}" if self.condition else base

    def __str__(self) -> str:
        return self.render()


# ── Catalog ──────────────────────────────────────────────────────────
# Not every resource x action pair exists (there is no `user.moderate`).
_DEFINITIONS: tuple[tuple[Resource, Action, str | None], ...] = (
    # User
    (Resource.USER, Action.CREATE, None),
    (Resource.USER, Action.READ, None),
    (Resource.USER, Action.UPDATE, None),
    (Resource.USER, Action.UPDATE, OWN),
    (Resource.USER, Action.DELETE, None),
    (Resource.USER, Action.MANAGE, None),
    # Post
    (Resource.POST, Action.CREATE, None),
    (Resource.POST, Action.READ, None),
    (Resource.POST, Action.UPDATE, None),
    (Resource.POST, Action.UPDATE, OWN),
    (Resource.POST, Action.DELETE, None),
    (Resource.POST, Action.DELETE, OWN),
    (Resource.POST, Action.MODERATE, None),
    (Resource.POST, Action.MANAGE, None),
    # Role
    (Resource.ROLE, Action.CREATE, None),
    (Resource.ROLE, Action.READ, None),
    (Resource.ROLE, Action.UPDATE, None),
    (Resource.ROLE, Action.DELETE, None),
    (Resource.ROLE, Action.MANAGE, None),
    # System
    (Resource.SYSTEM, Action.MANAGE, None),
)

USER_BASIC = "USER_BASIC"
MODERATOR = "MODERATOR"
ADMIN = "ADMIN"

_GROUPS: dict[str, tuple[str, ...]] = {
    USER_BASIC: (
        "post.create",
        "post.read",
        "post.update.own",
        "post.delete.own",
        "user.update.own",
    ),
    MODERATOR: (
        "post.read",
        "post.create",
        "post.update",
        "post.delete",
        "post.moderate",
        "user.read",
        "user.update.own",
    ),
}


@dataclass(frozen=True)
class PermissionCatalog:
    """Immutable set of valid identifiers plus named seeding bundles."""

    permissions: tuple[str, ...]
    groups: Mapping[str, tuple[str, ...]]

    def __contains__(self, permission: object) -> bool:
        if isinstance(permission, PermissionId):
            permission = permission.render()
        return permission in self.permissions

    def __iter__(self) -> Iterator[str]:
        return iter(self.permissions)

    def __len__(self) -> int:
        return len(self.permissions)

    def group(self, name: str) -> tuple[str, ...]:
        return self.groups[name]

    def validate(self, permission: Any) -> str:
        """Return the canonical identifier or raise `InvalidPermission`."""
        if permission not in self:
            raise InvalidPermission(permission)
        return str(permission)


def build_catalog() -> PermissionCatalog:
    permissions = tuple(PermissionId.of(*d).render() for d in _DEFINITIONS)
    groups = dict(_GROUPS)
    groups[ADMIN] = permissions

    unknown = {p for bundle in groups.values() for p in bundle} - set(permissions)
    if unknown:
        raise ValueError(f"Permission groups reference unknown identifiers: {sorted(unknown)}")

    return PermissionCatalog(permissions=permissions, groups=MappingProxyType(groups))
