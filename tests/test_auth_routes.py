from __future__ import annotations

from datetime import timedelta

import pytest

import routes.auth as auth_routes
from models.password_reset import PasswordResetToken
from helpers.accounts import login, make_user
from utils.dates import utcnow

REGISTRATION = {
    "username": "clara",
    "email": "clara@example.com",
    "password": "wellness1",
    "firstName": "Clara",
    "lastName": "Bad",
}


def test_register_logs_in_and_hides_password(client):
    response = client.post("/api/register", json=REGISTRATION)

    assert response.status_code == 201
    user = response.json()
    assert user["username"] == "clara"
    assert user["role"] == "member"
    assert "password" not in user and "passwordHash" not in user

    me = client.get("/api/user")
    assert me.status_code == 200
    assert me.json()["email"] == "clara@example.com"


def test_register_ignores_role_and_rejects_duplicates(client):
    first = client.post("/api/register", json={**REGISTRATION, "role": "admin"})
    assert first.json()["role"] == "member"

    duplicate = client.post("/api/register", json={**REGISTRATION, "username": "other"})
    assert duplicate.status_code == 400


def test_register_validation_returns_400(client):
    response = client.post("/api/register", json={**REGISTRATION, "email": "not-an-email"})
    assert response.status_code == 400


def test_login_with_username_or_email(client, session_local):
    make_user(session_local, "dora")

    login(client, "dora")
    assert client.get("/api/user").json()["username"] == "dora"

    client.post("/api/logout")
    login(client, "dora@example.com")
    assert client.get("/api/user").status_code == 200


def test_bad_credentials(client, session_local):
    make_user(session_local, "emil")
    response = client.post("/api/login", json={"username": "emil", "password": "wrong-pass"})
    assert response.status_code == 401


def test_logout_clears_session(client, member):
    assert client.get("/api/user").status_code == 200
    assert client.post("/api/logout").status_code == 200
    assert client.get("/api/user").status_code == 401


def test_reset_request_is_generic_for_unknown_email(client):
    response = client.post("/api/password-reset-request", json={"email": "nobody@example.com"})
    assert response.status_code == 200
    assert "resetToken" not in response.json()


def test_password_reset_flow(client, session_local, monkeypatch):
    make_user(session_local, "fritz")
    monkeypatch.setattr(auth_routes, "APP_ENV", "development")
    sent = []
    monkeypatch.setattr(auth_routes, "send_reset_mail", lambda *args: sent.append(args))

    response = client.post("/api/password-reset-request", json={"email": "fritz@example.com"})
    token = response.json()["resetToken"]
    assert sent and token in sent[0][2]

    reset = client.post("/api/password-reset", json={"token": token, "newPassword": "brandnew1"})
    assert reset.status_code == 200

    login(client, "fritz", "brandnew1")

    reused = client.post("/api/password-reset", json={"token": token, "newPassword": "another1"})
    assert reused.status_code == 400


def test_expired_reset_token(client, session_local):
    user_id = make_user(session_local, "greta")
    with session_local() as db:
        db.add(PasswordResetToken(user_id=user_id, token="expired-token", expires_at=utcnow() - timedelta(minutes=1)))
        db.commit()

    response = client.post("/api/password-reset", json={"token": "expired-token", "newPassword": "brandnew1"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_health_async(async_client):
    response = await async_client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_unauthenticated_member_routes_async(async_client):
    for path in ("/api/user", "/api/membership", "/api/punch-cards", "/api/payments"):
        response = await async_client.get(path)
        assert response.status_code == 401, path
