"""The framework-free guard: `authorize` and the two decorators."""

import uuid

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import NotAuthenticated, PermissionDenied
from app.rbac import resolver
from app.rbac.guard import authorize, login_required, permission_required

pytestmark = pytest.mark.asyncio


async def test_authorize_without_principal_is_401(db) -> None:
    with pytest.raises(NotAuthenticated) as exc:
        await authorize(None, "post.read", db)
    assert exc.value.status_code == 401


async def test_authorize_returns_principal_when_granted(db, make_user) -> None:
    user = await make_user(direct=["post.read"])
    assert await authorize(user, "post.read", db) is user


async def test_authorize_denial_names_permission(db, make_user) -> None:
    user = await make_user(direct=["post.read"])
    with pytest.raises(PermissionDenied) as exc:
        await authorize(user, "post.delete", db)
    assert exc.value.status_code == 403
    assert exc.value.permission == "post.delete"
    assert exc.value.detail == "You don't have permission: post.delete"


async def test_authorize_uses_owner(db, make_user) -> None:
    user = await make_user(direct=["post.update.own"])
    assert await authorize(user, "post.update.own", db, owner_id=user.id) is user
    with pytest.raises(PermissionDenied):
        await authorize(user, "post.update.own", db, owner_id=uuid.uuid4())


async def test_authorize_inactive_principal_is_403(db, make_user) -> None:
    user = await make_user(direct=["post.read"], is_active=False)
    with pytest.raises(PermissionDenied):
        await authorize(user, "post.read", db)


async def test_authorize_storage_failure_is_403(db, make_user, monkeypatch) -> None:
    user = await make_user(direct=["post.read"])

    async def _boom(user_id, session):
        raise OperationalError("SELECT", {}, Exception("gone"))

    monkeypatch.setattr(resolver, "load_user_with_roles", _boom)
    with pytest.raises(PermissionDenied):
        await authorize(user, "post.read", db)


async def test_login_required(db, make_user) -> None:
    calls = []

    @login_required
    async def whoami(*, principal, db):
        calls.append(principal)
        return principal.email

    user = await make_user()
    assert await whoami(principal=user, db=db) == user.email

    with pytest.raises(NotAuthenticated):
        await whoami(principal=None, db=db)
    assert calls == [user]


async def test_permission_required_runs_operation_only_when_granted(db, make_user) -> None:
    calls = []

    @permission_required("post.delete")
    async def delete(post_id, *, principal, db):
        calls.append(post_id)
        return "deleted"

    allowed = await make_user(direct=["post.manage"])
    denied = await make_user(direct=["post.read"])

    assert await delete("p1", principal=allowed, db=db) == "deleted"
    with pytest.raises(PermissionDenied) as exc:
        await delete("p2", principal=denied, db=db)
    assert exc.value.permission == "post.delete"
    with pytest.raises(NotAuthenticated):
        await delete("p3", principal=None, db=db)
    assert calls == ["p1"]


async def test_permission_required_owner_extractor(db, make_user) -> None:
    owners = {"mine": None, "theirs": "someone-else"}

    async def owner_of(post_id, **_):
        return owners[post_id]

    @permission_required("post.update.own", owner_id=owner_of)
    async def rename(post_id, *, principal, db):
        return post_id

    user = await make_user(direct=["post.update.own"])
    owners["mine"] = user.id

    assert await rename("mine", principal=user, db=db) == "mine"
    with pytest.raises(PermissionDenied):
        await rename("theirs", principal=user, db=db)


async def test_permission_required_sync_extractor(db, make_user) -> None:
    user = await make_user(direct=["user.update.own"])

    @permission_required("user.update.own", owner_id=lambda target, **_: target)
    async def edit_profile(target, *, principal, db):
        return True

    assert await edit_profile(str(user.id), principal=user, db=db) is True
    with pytest.raises(PermissionDenied):
        await edit_profile("other", principal=user, db=db)


async def test_operation_errors_propagate_untouched(db, make_user) -> None:
    @permission_required("post.read")
    async def explode(*, principal, db):
        raise ValueError("boom")

    user = await make_user(direct=["post.read"])
    with pytest.raises(ValueError, match="boom"):
        await explode(principal=user, db=db)


async def test_authorize_connection_refused_is_403(db, make_user, monkeypatch) -> None:
    user = await make_user(direct=["post.read"])

    async def _refused(user_id, session):
        raise ConnectionRefusedError(111, "Connect call failed")

    monkeypatch.setattr(resolver, "load_user_with_roles", _refused)
    with pytest.raises(PermissionDenied) as exc:
        await authorize(user, "post.read", db)
    assert exc.value.permission == "post.read"
