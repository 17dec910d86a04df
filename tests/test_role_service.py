import uuid

import pytest

from app.core.exceptions import Conflict, InvalidPermission, NotFound, SystemRoleViolation
from app.services import role_service

pytestmark = pytest.mark.asyncio


async def test_create_role(db, catalog) -> None:
    role = await role_service.create_role(
        "editor", db, catalog, description="Edits", permissions=["post.update", "post.read", "post.update"]
    )
    assert role.name == "editor"
    assert role.permissions == ["post.update", "post.read"]
    assert role.is_system is False


async def test_create_role_rejects_unknown_permission(db, catalog) -> None:
    with pytest.raises(InvalidPermission):
        await role_service.create_role("editor", db, catalog, permissions=["post.fly"])
    assert await role_service.get_role_by_name("editor", db) is None


async def test_create_role_duplicate_name(db, catalog, make_role) -> None:
    await make_role("editor")
    with pytest.raises(Conflict):
        await role_service.create_role("editor", db, catalog)


async def test_add_permission(db, catalog, make_role) -> None:
    role = await make_role(permissions=["post.read"])
    updated = await role_service.add_permission_to_role(role.id, "post.create", db, catalog)
    assert set(updated.permissions) == {"post.read", "post.create"}


async def test_add_permission_is_idempotent(db, catalog, make_role) -> None:
    role = await make_role(permissions=["post.read"])
    await role_service.add_permission_to_role(role.id, "post.read", db, catalog)
    await role_service.add_permission_to_role(role.id, "post.read", db, catalog)
    assert role.permissions == ["post.read"]


async def test_remove_permission_is_idempotent(db, catalog, make_role) -> None:
    role = await make_role(permissions=["post.read", "post.create"])
    await role_service.remove_permission_from_role(role.id, "post.create", db, catalog)
    await role_service.remove_permission_from_role(role.id, "post.create", db, catalog)
    await role_service.remove_permission_from_role(role.id, "post.delete", db, catalog)
    assert role.permissions == ["post.read"]


@pytest.mark.parametrize("permission", ["post.fly", "post", "blog.read", "role.update.own"])
async def test_invalid_permission_leaves_role_untouched(db, catalog, make_role, permission) -> None:
    role = await make_role(permissions=["post.read"])
    with pytest.raises(InvalidPermission):
        await role_service.add_permission_to_role(role.id, permission, db, catalog)
    with pytest.raises(InvalidPermission):
        await role_service.remove_permission_from_role(role.id, permission, db, catalog)
    assert role.permissions == ["post.read"]


async def test_invalid_permission_checked_before_role_lookup(db, catalog) -> None:
    with pytest.raises(InvalidPermission):
        await role_service.add_permission_to_role(uuid.uuid4(), "post.fly", db, catalog)


async def test_missing_role(db, catalog) -> None:
    with pytest.raises(NotFound) as exc:
        await role_service.add_permission_to_role(uuid.uuid4(), "post.read", db, catalog)
    assert exc.value.status_code == 404
    with pytest.raises(NotFound):
        await role_service.remove_permission_from_role(uuid.uuid4(), "post.read", db, catalog)


async def test_system_roles_can_be_edited_not_renamed_or_deleted(db, catalog, system_roles) -> None:
    admin = system_roles["admin"]

    updated = await role_service.update_role(admin.id, db, description="Root")
    assert updated.description == "Root"
    await role_service.remove_permission_from_role(admin.id, "system.manage", db, catalog)
    assert "system.manage" not in admin.permissions

    with pytest.raises(SystemRoleViolation):
        await role_service.update_role(admin.id, db, name="root")
    with pytest.raises(SystemRoleViolation) as exc:
        await role_service.delete_role(admin.id, db)
    assert exc.value.status_code == 409


async def test_rename_and_delete_custom_role(db, make_role) -> None:
    role = await make_role("editor")
    await make_role("writer")

    with pytest.raises(Conflict):
        await role_service.update_role(role.id, db, name="writer")

    renamed = await role_service.update_role(role.id, db, name="reviewer", is_active=False)
    assert (renamed.name, renamed.is_active) == ("reviewer", False)

    await role_service.delete_role(role.id, db)
    assert await role_service.find_role_by_id(role.id, db) is None


async def test_list_roles_sorted_by_name(db, system_roles) -> None:
    assert [r.name for r in await role_service.list_roles(db)] == ["admin", "moderator", "user"]
