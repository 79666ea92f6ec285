"""Shared pytest fixtures: an in-memory store, seeded owners and API clients."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from stockbook.db.database import Database
from stockbook.main import create_app
from stockbook.models.user import User

TEST_PASSWORD = "correct-horse-battery"


def _make_user(db: Session, name: str, email: str) -> int:
    # Service tests never log in, so a placeholder hash is enough here.
    user = User(name=name, email=email, password_hash="not-a-real-hash")
    db.add(user)
    db.commit()
    return user.id


@pytest.fixture
def database() -> Iterator[Database]:
    database = Database("sqlite://")
    database.create_all()
    try:
        yield database
    finally:
        database.dispose()


@pytest.fixture
def db(database) -> Iterator[Session]:
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def owner(db) -> int:
    return _make_user(db, "Owner One", "owner1@example.com")


@pytest.fixture
def other_owner(db) -> int:
    return _make_user(db, "Owner Two", "owner2@example.com")


@pytest.fixture
def client(database) -> Iterator[TestClient]:
    with TestClient(create_app(database)) as test_client:
        yield test_client


def register_and_login(client: TestClient, email: str, name: str = "Shop Keeper") -> str:
    response = client.post("/auth/register", json={"name": name, "email": email, "password": TEST_PASSWORD})
    assert response.status_code == 201, response.text
    response = client.post("/auth/login", json={"email": email, "password": TEST_PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


@pytest.fixture
def auth_client(client) -> TestClient:
    token = register_and_login(client, "keeper@example.com")
    client.headers["Authorization"] = f"Bearer {token}"
    return client


@pytest.fixture
def login(client):
    """Register a further user on the shared client and return their access token."""

    def _login(email: str, name: str = "Shop Keeper") -> str:
        return register_and_login(client, email, name)

    return _login
