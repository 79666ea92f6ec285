from dataclasses import replace
from datetime import timedelta

import pytest
from sqlalchemy import select

from stockbook.api.routes import auth as auth_routes
from stockbook.core.security import digest_one_time_secret
from stockbook.core.timeframes import utc_now
from stockbook.models.security import OneTimeToken

EMAIL = "keeper@example.com"
PASSWORD = "correct-horse-battery"


@pytest.fixture
def registered(client):
    response = client.post("/auth/register", json={"name": "Keeper", "email": EMAIL, "password": PASSWORD})
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def debug_tokens(monkeypatch):
    monkeypatch.setattr(auth_routes, "settings", replace(auth_routes.settings, expose_debug_tokens=True))


def _request_reset(client) -> str:
    response = client.post("/auth/forgot-password", json={"email": EMAIL})
    assert response.status_code == 200
    return response.json()["debug_token"]


def test_register_normalizes_email(client):
    response = client.post(
        "/auth/register", json={"name": " Keeper ", "email": "  Keeper@Example.COM ", "password": PASSWORD}
    )

    assert response.status_code == 201
    body = response.json()
    assert body["email"] == EMAIL
    assert body["name"] == "Keeper"
    assert "password_hash" not in body


def test_duplicate_registration_conflicts(client, registered):
    response = client.post("/auth/register", json={"name": "Again", "email": EMAIL.upper(), "password": PASSWORD})

    assert response.status_code == 409


def test_short_password_rejected(client):
    response = client.post("/auth/register", json={"name": "Keeper", "email": EMAIL, "password": "short"})

    assert response.status_code == 400


def test_login_returns_token_and_sets_cookie(client, registered):
    response = client.post("/auth/login", json={"email": EMAIL, "password": PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["token"] == body["access_token"]
    assert body["expires_in"] == 24 * 60 * 60
    assert body["user"]["id"] == registered["id"]
    assert response.cookies.get("access_token") == body["access_token"]


def test_login_with_wrong_password(client, registered):
    response = client.post("/auth/login", json={"email": EMAIL, "password": "wrong-password"})

    assert response.status_code == 401


def test_token_endpoint_accepts_password_form(client, registered):
    response = client.post("/auth/token", data={"username": EMAIL, "password": PASSWORD})

    assert response.status_code == 200
    assert response.json()["access_token"]


def test_me_accepts_bearer_header_or_cookie(client, registered):
    token = client.post("/auth/login", json={"email": EMAIL, "password": PASSWORD}).json()["access_token"]

    # Cookie set by the login response.
    assert client.get("/auth/me").json()["email"] == EMAIL

    client.cookies.clear()
    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 200
    assert client.get("/auth/me", headers={"x-access-token": f'"{token}"'}).status_code == 200


def test_me_rejects_garbage_token(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_forgot_password_does_not_reveal_unknown_email(client, debug_tokens):
    response = client.post("/auth/forgot-password", json={"email": "nobody@example.com"})

    assert response.status_code == 200
    assert response.json()["debug_token"] is None


def test_password_reset_flow(client, registered, debug_tokens):
    token = _request_reset(client)

    response = client.post("/auth/reset-password", json={"token": token, "new_password": "a-brand-new-secret"})
    assert response.status_code == 200

    assert client.post("/auth/login", json={"email": EMAIL, "password": PASSWORD}).status_code == 401
    assert client.post("/auth/login", json={"email": EMAIL, "password": "a-brand-new-secret"}).status_code == 200

    reused = client.post("/auth/reset-password", json={"token": token, "new_password": "another-secret-1"})
    assert reused.status_code == 400


def test_expired_reset_token_rejected(client, database, registered, debug_tokens):
    token = _request_reset(client)
    with database.session() as session:
        row = session.scalar(select(OneTimeToken).where(OneTimeToken.token_hash == digest_one_time_secret(token)))
        row.expires_at = utc_now() - timedelta(minutes=1)
        session.commit()

    response = client.post("/auth/reset-password", json={"token": token, "new_password": "a-brand-new-secret"})

    assert response.status_code == 400
