import pytest

pytestmark = pytest.mark.asyncio

REGISTER = {"name": "Ada", "email": "Ada@Example.com", "password": "secret123", "age": 36}


async def test_register_gets_default_role(client, system_roles, catalog) -> None:
    resp = await client.post("/api/auth/register", json=REGISTER)
    assert resp.status_code == 201
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["roles"] == ["user"]

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    me = await client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["email"] == "ada@example.com"

    perms = await client.get("/api/auth/me/permissions", headers=headers)
    assert perms.json()["permissions"] == sorted(catalog.group("USER_BASIC"))


async def test_register_duplicate_email(client, system_roles) -> None:
    assert (await client.post("/api/auth/register", json=REGISTER)).status_code == 201
    resp = await client.post("/api/auth/register", json={**REGISTER, "email": "ada@example.com"})
    assert resp.status_code == 409


async def test_register_without_seeded_roles(client) -> None:
    resp = await client.post("/api/auth/register", json=REGISTER)
    assert resp.status_code == 500


async def test_register_validation(client, system_roles) -> None:
    resp = await client.post("/api/auth/register", json={**REGISTER, "email": "not-an-email"})
    assert resp.status_code == 422


async def test_login(client, make_user) -> None:
    user = await make_user(email="bob@example.com")
    resp = await client.post("/api/auth/login", json={"email": "bob@example.com", "password": "secret123"})
    assert resp.status_code == 200
    assert resp.json()["user_id"] == str(user.id)
    assert user.last_login_at is not None


async def test_login_wrong_password(client, make_user) -> None:
    await make_user(email="bob@example.com")
    resp = await client.post("/api/auth/login", json={"email": "bob@example.com", "password": "nope"})
    assert resp.status_code == 401
    resp = await client.post("/api/auth/login", json={"email": "who@example.com", "password": "nope"})
    assert resp.status_code == 401


async def test_login_deactivated(client, make_user) -> None:
    await make_user(email="bob@example.com", is_active=False)
    resp = await client.post("/api/auth/login", json={"email": "bob@example.com", "password": "secret123"})
    assert resp.status_code == 403


async def test_me_requires_token(client) -> None:
    assert (await client.get("/api/auth/me")).status_code == 401
    resp = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


async def test_deactivated_user_has_no_effective_permissions(client, make_user, headers_for) -> None:
    user = await make_user(direct=["post.read"], is_active=False)
    resp = await client.get("/api/auth/me/permissions", headers=headers_for(user))
    assert resp.status_code == 200
    assert resp.json()["permissions"] == []


async def test_health(client) -> None:
    assert (await client.get("/health")).json() == {"status": "ok"}


async def test_change_password(client, make_user, headers_for) -> None:
    user = await make_user(email="carol@example.com")
    headers = headers_for(user)

    resp = await client.post(
        "/api/auth/change-password",
        json={"current_password": "secret123", "new_password": "brand-new"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json() == {"detail": "Password changed successfully"}

    old = await client.post("/api/auth/login", json={"email": "carol@example.com", "password": "secret123"})
    assert old.status_code == 401
    new = await client.post("/api/auth/login", json={"email": "carol@example.com", "password": "brand-new"})
    assert new.status_code == 200


async def test_change_password_wrong_current(client, make_user, headers_for) -> None:
    user = await make_user()
    before = user.password_hash

    resp = await client.post(
        "/api/auth/change-password",
        json={"current_password": "nope", "new_password": "brand-new"},
        headers=headers_for(user),
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Current password is incorrect"
    assert user.password_hash == before


async def test_change_password_validation_and_auth(client, make_user, headers_for) -> None:
    valid = {"current_password": "secret123", "new_password": "long-enough"}
    assert (await client.post("/api/auth/change-password", json=valid)).status_code == 401

    payload = {"current_password": "secret123", "new_password": "short"}

    user = await make_user()
    resp = await client.post("/api/auth/change-password", json=payload, headers=headers_for(user))
    assert resp.status_code == 422
