import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

sys.path.append(str(Path(__file__).resolve().parents[1]))

from framebook.core.rate_limiter import InMemoryRateLimiter
from framebook.db.session import Database
from framebook.main import create_app

TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"
PASSWORD = "StrongPass123"


@pytest.fixture()
def database() -> Database:
    db = Database(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture()
def rate_limiter() -> InMemoryRateLimiter:
    return InMemoryRateLimiter()


@pytest.fixture()
def client(database: Database, rate_limiter: InMemoryRateLimiter) -> TestClient:
    app = create_app(database=database, rate_limiter=rate_limiter)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_user(client: TestClient):
    """Register a user and return ``(user_id, auth_headers)``."""

    def _make_user(username: str, role: str = "CLIENT") -> tuple[int, dict[str, str]]:
        email = f"{username}@example.com"
        registered = client.post(
            "/auth/register",
            json={"email": email, "password": PASSWORD, "username": username, "role": role},
        )
        assert registered.status_code == 201, registered.text
        login = client.post("/auth/login", json={"email": email, "password": PASSWORD})
        token = login.json()["access_token"]
        return registered.json()["id"], {"Authorization": f"Bearer {token}"}

    return _make_user
