"""Shared fixtures: a fresh app over an in-memory database per test."""

from __future__ import annotations

import base64
from itertools import count

import pytest
from fastapi.testclient import TestClient

from config.settings import Settings
from infrastructure.db.sqlite import Database, SQLiteTransactionRepository, init_db
from main import create_app

_emails = count(1)


def _test_settings(**overrides) -> Settings:
    values = {
        "SECRET_KEY": "test-secret",
        "DB_PATH": ":memory:",
        "APP_ENV": "test",
        "CORS_ORIGINS": ["http://localhost:3000"],
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return _test_settings()


@pytest.fixture
def client(settings: Settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


def basic_auth(email: str, password: str) -> dict[str, str]:
    raw = base64.b64encode(f"{email}:{password}".encode()).decode()
    return {"Authorization": f"Basic {raw}"}


def signup(client: TestClient, email: str | None = None, password: str = "secret123") -> dict[str, str]:
    """Register a user, log in and return bearer headers."""
    email = email or f"user{next(_emails)}@example.com"
    response = client.post("/register", json={"name": "Test User", "email": email, "password": password})
    assert response.status_code == 201, response.text
    response = client.post("/login", headers=basic_auth(email, password))
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client: TestClient) -> dict[str, str]:
    return signup(client)


@pytest.fixture
def repo():
    db = Database(":memory:")
    init_db(db)
    yield SQLiteTransactionRepository(db)
    db.close()
