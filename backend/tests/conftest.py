"""Pytest fixtures and configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

# Set environment variables before importing app modules
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATA_DIR", "/tmp/sakura-test-data")
os.environ.setdefault("JWT_SECRET", "test-secret")

from app.auth.token_auth import AuthService  # noqa: E402
from app.core.config import Settings  # noqa: E402
from app.main import create_app  # noqa: E402
from app.repositories.local_repo import LocalAccountRepository  # noqa: E402
from app.services.sync_service import SyncService  # noqa: E402


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at an isolated data directory."""
    return Settings(
        environment="test",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        data_dir=tmp_path / "data",
    )


@pytest.fixture
def repository(settings: Settings) -> LocalAccountRepository:
    repo = LocalAccountRepository(settings.users_dir)
    repo.ensure_ready()
    return repo


@pytest.fixture
def auth_service(repository: LocalAccountRepository, settings: Settings) -> AuthService:
    return AuthService(repository, settings)


@pytest.fixture
def sync_service(repository: LocalAccountRepository) -> SyncService:
    return SyncService(repository)


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Test client with the app lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client: TestClient) -> dict[str, str]:
    """Register a user and return an Authorization header for it."""
    credentials = {"email": "a@x.com", "password": "pw1"}
    assert client.post("/register", json=credentials).status_code == 200
    token = client.post("/login", json=credentials).json()["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sample_transactions() -> list[dict[str, Any]]:
    """Sample client transactions."""
    return [
        {
            "id": "1",
            "title": "Coffee",
            "description": "Morning latte",
            "type": "purchase",
            "amount": -3.5,
            "date": "2024-01-01T00:00:00Z",
        },
        {
            "id": "2",
            "title": "Salary",
            "description": "",
            "type": "salary",
            "amount": 2500,
            "date": "2024-01-31T09:00:00Z",
        },
        {
            "id": "3",
            "title": "Groceries",
            "description": "Weekly shop",
            "type": "purchase",
            "amount": -62.1,
            "date": "2024-01-14T18:30:00Z",
        },
    ]
