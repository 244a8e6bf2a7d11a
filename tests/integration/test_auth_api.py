"""Integration tests for registration, login and password recovery."""

from mootcourt.core.config import get_settings


async def _register(client, username="counsel", email="counsel@example.org", password="pw-123"):
    return await client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password},
    )


async def _login(client, username="counsel", password="pw-123"):
    return await client.post("/api/auth/token", data={"username": username, "password": password})


async def test_register_login_me(async_client):
    """Register, exchange credentials for a token, then fetch the profile."""
    resp = await _register(async_client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["username"] == "counsel"
    assert body["isAdmin"] is False
    assert "password" not in body and "passwordHash" not in body

    resp = await _login(async_client)
    assert resp.status_code == 200
    token = resp.json()["access_token"]
    assert resp.json()["token_type"] == "bearer"

    resp = await async_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["email"] == "counsel@example.org"


async def test_duplicate_registration(async_client):
    await _register(async_client)
    resp = await _register(async_client, email="other@example.org")
    assert resp.status_code == 409
    assert resp.json()["code"] == "DUPLICATE_USER"


async def test_register_validation(async_client):
    resp = await _register(async_client, username="ab")
    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["message"] == "Request validation failed"
    assert body["errors"][0]["loc"] == ["body", "username"]


async def test_wrong_password(async_client):
    await _register(async_client)
    resp = await _login(async_client, password="nope")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Incorrect username or password"


async def test_missing_and_bad_tokens(async_client):
    resp = await async_client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["code"] == "NOT_AUTHENTICATED"

    resp = await async_client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Could not validate credentials"


async def test_non_admin_forbidden(async_client, user_headers):
    resp = await async_client.get("/api/admin/progress", headers=user_headers)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Unauthorized"


# ---------------------------------------------------------------------------
# Password recovery
# ---------------------------------------------------------------------------


async def test_forgot_password_does_not_reveal_accounts(async_client):
    await _register(async_client)
    known = await async_client.post("/api/forgot-password", json={"email": "counsel@example.org"})
    unknown = await async_client.post("/api/forgot-password", json={"email": "ghost@example.org"})

    assert known.status_code == unknown.status_code == 200
    assert known.json()["message"] == unknown.json()["message"]
    assert known.json()["token"] is None


async def test_reset_password_flow(async_client, monkeypatch):
    monkeypatch.setattr(get_settings(), "expose_reset_tokens", True)
    await _register(async_client)

    resp = await async_client.post("/api/forgot-password", json={"email": "counsel@example.org"})
    token = resp.json()["token"]
    assert token

    resp = await async_client.post(
        "/api/reset-password", json={"token": token, "newPassword": "brand-new"}
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Password updated successfully"

    assert (await _login(async_client, password="pw-123")).status_code == 401
    assert (await _login(async_client, password="brand-new")).status_code == 200

    # Tokens are single use
    resp = await async_client.post(
        "/api/reset-password", json={"token": token, "newPassword": "again"}
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_RESET_TOKEN"


async def test_admin_reset_password(async_client, admin_headers):
    user = (await _register(async_client)).json()

    resp = await async_client.post(
        f"/api/admin/users/{user['id']}/reset-password",
        headers=admin_headers,
        json={"newPassword": "  set-by-admin  "},
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Password reset successfully"
    assert (await _login(async_client, password="set-by-admin")).status_code == 200


async def test_admin_reset_password_validation(async_client, admin_headers):
    resp = await async_client.post(
        "/api/admin/users/1/reset-password", headers=admin_headers, json={"newPassword": "   "}
    )
    assert resp.status_code == 400

    resp = await async_client.post(
        "/api/admin/users/999/reset-password", headers=admin_headers, json={"newPassword": "x"}
    )
    assert resp.status_code == 404
