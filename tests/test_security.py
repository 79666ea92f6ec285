from dataclasses import replace

import pytest
from jose import JWTError, jwt

from stockbook.core import security
from stockbook.core.security import (
    digest_one_time_secret,
    hash_password,
    issue_access_token,
    issue_one_time_secret,
    read_access_token,
    verify_password,
)


def test_password_round_trip():
    password_hash = hash_password("correct-horse-battery")

    assert password_hash != "correct-horse-battery"
    assert verify_password("correct-horse-battery", password_hash)
    assert not verify_password("wrong-horse-battery", password_hash)


def test_access_token_carries_user_id():
    access = issue_access_token(42, "keeper@example.com")

    assert access.expires_in == 24 * 60 * 60
    assert read_access_token(access.token) == 42


def test_token_signed_with_another_key_is_rejected(monkeypatch):
    access = issue_access_token(42, "keeper@example.com")
    monkeypatch.setattr(security, "settings", replace(security.settings, secret_key="a-different-secret-key"))

    with pytest.raises(JWTError):
        read_access_token(access.token)


def test_non_access_token_is_rejected():
    settings = security.settings
    token = jwt.encode(
        {"sub": "42", "type": "refresh", "iss": settings.issuer},
        settings.secret_key,
        algorithm=settings.algorithm,
    )

    with pytest.raises(JWTError, match="not an access token"):
        read_access_token(token)


def test_one_time_secret_stores_only_a_digest():
    secret = issue_one_time_secret()

    assert secret.raw not in secret.digest
    assert secret.digest == digest_one_time_secret(secret.raw)
    assert issue_one_time_secret().raw != secret.raw
