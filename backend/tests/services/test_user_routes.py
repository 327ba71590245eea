"""User Routes — registration, login and profile lifecycle over HTTP.

Invariants:
    - Registered users are stored with a bcrypt hash, never the plaintext
    - Tokens from register/login decode to the user's id/email/role
    - Login distinguishes unknown email from wrong password (configurable)
    - Password change and profile deletion re-verify the current password
"""

from sqlalchemy import select

from storefront.config import get_settings
from storefront.infrastructure.security import decode_access_token, verify_password
from storefront.models.user import User


async def _register(client, email="carol@example.com", password="secret123", name="Carol"):
    return await client.post(
        "/api/users/register",
        json={"name": name, "email": email, "password": password},
    )


# ─── register ────────────────────────────────────────────────────

async def test_register_creates_user_with_hashed_password(client, test_db):
    res = await _register(client)
    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "User registered successfully"
    assert body["user"]["email"] == "carol@example.com"
    assert body["user"]["role"] == "user"
    assert "passwordHash" not in body["user"]
    assert "password" not in body["user"]

    result = await test_db.execute(select(User).where(User.email == "carol@example.com"))
    stored = result.scalar_one()
    assert stored.password_hash != "secret123"
    assert await verify_password("secret123", stored.password_hash)


async def test_register_token_claims_match_new_user(client):
    res = await _register(client)
    body = res.json()
    identity = decode_access_token(body["token"])
    assert identity.id == body["user"]["id"]
    assert identity.email == "carol@example.com"
    assert identity.role.value == "user"


async def test_register_normalizes_email_case(client):
    res = await _register(client, email="  Carol@Example.COM ")
    assert res.status_code == 201
    assert res.json()["user"]["email"] == "carol@example.com"


async def test_register_duplicate_email_returns_409(client):
    await _register(client)
    res = await _register(client, email="CAROL@example.com")
    assert res.status_code == 409
    assert res.json()["code"] == "CONFLICT"


async def test_register_rejects_malformed_email(client):
    res = await _register(client, email="carol-at-example")
    assert res.status_code == 400
    assert "error" in res.json()


async def test_register_rejects_short_password(client):
    res = await _register(client, password="12345")
    assert res.status_code == 400
    assert "at least 6" in res.json()["error"]


async def test_register_requires_all_fields(client):
    res = await client.post("/api/users/register", json={"email": "x@y.io"})
    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"


# ─── login ───────────────────────────────────────────────────────

async def test_login_returns_token_accepted_by_protected_routes(client, make_user):
    await make_user(email="dave@example.com", password="hunter22")
    res = await client.post(
        "/api/users/login", json={"email": "dave@example.com", "password": "hunter22"},
    )
    assert res.status_code == 200
    token = res.json()["token"]

    profile = await client.get(
        "/api/users/profile", headers={"Authorization": f"Bearer {token}"},
    )
    assert profile.status_code == 200
    assert profile.json()["user"]["email"] == "dave@example.com"


async def test_login_wrong_password_returns_401_incorrect_password(client, make_user):
    await make_user(email="dave@example.com", password="hunter22")
    res = await client.post(
        "/api/users/login", json={"email": "dave@example.com", "password": "nope123"},
    )
    assert res.status_code == 401
    assert res.json()["error"] == "Incorrect password"


async def test_login_with_overlong_password_is_plain_401(client, make_user):
    await make_user(email="dave@example.com", password="hunter22")
    res = await client.post(
        "/api/users/login", json={"email": "dave@example.com", "password": "p" * 100},
    )
    assert res.status_code == 401
    assert res.json()["error"] == "Incorrect password"


async def test_login_unknown_email_returns_401_invalid_email(client):
    res = await client.post(
        "/api/users/login", json={"email": "ghost@example.com", "password": "whatever"},
    )
    assert res.status_code == 401
    assert res.json()["error"] == "Invalid email"


async def test_login_generic_errors_hide_account_existence(client, make_user, monkeypatch):
    monkeypatch.setattr(get_settings(), "login_generic_errors", True)
    await make_user(email="dave@example.com", password="hunter22")
    wrong_password = await client.post(
        "/api/users/login", json={"email": "dave@example.com", "password": "nope123"},
    )
    unknown_email = await client.post(
        "/api/users/login", json={"email": "ghost@example.com", "password": "nope123"},
    )
    assert wrong_password.json()["error"] == unknown_email.json()["error"]
    assert unknown_email.status_code == 401


async def test_login_missing_fields_returns_400(client):
    res = await client.post("/api/users/login", json={"email": "dave@example.com"})
    assert res.status_code == 400


# ─── profile read ────────────────────────────────────────────────

async def test_profile_requires_token(client):
    res = await client.get("/api/users/profile")
    assert res.status_code == 401
    assert res.json()["code"] == "UNAUTHENTICATED"


async def test_profile_rejects_garbage_token(client):
    res = await client.get(
        "/api/users/profile", headers={"Authorization": "Bearer not.a.jwt"},
    )
    assert res.status_code == 401


async def test_profile_includes_orders_with_products(
    client, make_user, make_product, auth_headers,
):
    user = await make_user()
    product = await make_product(name="Lamp", price="12.50", stock=4)
    headers = auth_headers(user)
    await client.post(
        "/api/orders", json={"items": [{"productId": product.id, "quantity": 2}]},
        headers=headers,
    )

    res = await client.get("/api/users/profile", headers=headers)
    assert res.status_code == 200
    profile = res.json()["user"]
    assert len(profile["orders"]) == 1
    order = profile["orders"][0]
    assert order["total"] == 25.0
    assert order["items"][0]["product"]["name"] == "Lamp"


# ─── profile update ──────────────────────────────────────────────

async def test_update_profile_changes_only_sent_fields(client, make_user, auth_headers):
    user = await make_user(name="Alice", email="alice@example.com")
    res = await client.put(
        "/api/users/profile", json={"name": "Alicia"}, headers=auth_headers(user),
    )
    assert res.status_code == 200
    body = res.json()["user"]
    assert body["name"] == "Alicia"
    assert body["email"] == "alice@example.com"


async def test_update_profile_rejects_empty_name(client, make_user, auth_headers):
    user = await make_user()
    res = await client.put(
        "/api/users/profile", json={"name": "   "}, headers=auth_headers(user),
    )
    assert res.status_code == 400


async def test_update_profile_rejects_empty_patch(client, make_user, auth_headers):
    user = await make_user()
    res = await client.put("/api/users/profile", json={}, headers=auth_headers(user))
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_INPUT"


async def test_update_profile_email_taken_by_other_user_returns_409(
    client, make_user, auth_headers,
):
    await make_user(email="bob@example.com", name="Bob")
    alice = await make_user(email="alice@example.com")
    res = await client.put(
        "/api/users/profile", json={"email": "bob@example.com"},
        headers=auth_headers(alice),
    )
    assert res.status_code == 409


async def test_update_profile_keeping_own_email_is_allowed(client, make_user, auth_headers):
    alice = await make_user(email="alice@example.com")
    res = await client.put(
        "/api/users/profile", json={"email": "alice@example.com", "name": "Al"},
        headers=auth_headers(alice),
    )
    assert res.status_code == 200


async def test_update_password_requires_current_password(client, make_user, auth_headers):
    user = await make_user()
    res = await client.put(
        "/api/users/profile", json={"password": "newpass123"}, headers=auth_headers(user),
    )
    assert res.status_code == 400


async def test_update_password_with_wrong_current_password_returns_401(
    client, make_user, auth_headers,
):
    user = await make_user(password="secret123")
    res = await client.put(
        "/api/users/profile",
        json={"password": "newpass123", "currentPassword": "wrong-one"},
        headers=auth_headers(user),
    )
    assert res.status_code == 401


async def test_update_password_then_login_with_new_password(client, make_user, auth_headers):
    user = await make_user(email="alice@example.com", password="secret123")
    res = await client.put(
        "/api/users/profile",
        json={"password": "newpass123", "currentPassword": "secret123"},
        headers=auth_headers(user),
    )
    assert res.status_code == 200

    old = await client.post(
        "/api/users/login", json={"email": "alice@example.com", "password": "secret123"},
    )
    new = await client.post(
        "/api/users/login", json={"email": "alice@example.com", "password": "newpass123"},
    )
    assert old.status_code == 401
    assert new.status_code == 200


# ─── profile delete ──────────────────────────────────────────────

async def test_delete_profile_requires_password(client, make_user, auth_headers):
    user = await make_user()
    res = await client.request(
        "DELETE", "/api/users/profile", json={}, headers=auth_headers(user),
    )
    assert res.status_code == 400


async def test_delete_profile_wrong_password_keeps_user(
    client, make_user, auth_headers, test_db,
):
    user = await make_user(password="secret123")
    res = await client.request(
        "DELETE", "/api/users/profile", json={"password": "nope123"},
        headers=auth_headers(user),
    )
    assert res.status_code == 401
    assert await test_db.get(User, user.id) is not None


async def test_delete_profile_removes_user_and_orders(
    client, make_user, make_product, auth_headers,
):
    user = await make_user(password="secret123")
    product = await make_product(stock=3)
    headers = auth_headers(user)
    await client.post(
        "/api/orders", json={"items": [{"productId": product.id, "quantity": 1}]},
        headers=headers,
    )

    res = await client.request(
        "DELETE", "/api/users/profile", json={"password": "secret123"}, headers=headers,
    )
    assert res.status_code == 200
    assert res.json()["message"] == "Profile deleted successfully"

    profile = await client.get("/api/users/profile", headers=headers)
    assert profile.status_code == 404
    orders = await client.get("/api/orders", headers=headers)
    assert orders.json()["orders"] == []
