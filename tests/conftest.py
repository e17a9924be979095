"""Pytest configuration and shared fixtures."""

import logging
import os
from collections.abc import AsyncIterator, Generator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from taskboard.core.config import Settings
from taskboard.core.db_client import DBClient
from taskboard.core.schema import init_db
from taskboard.main import create_app
from taskboard.services.credential_service import CredentialService
from taskboard.services.task_service import TaskService
from taskboard.services.user_service import UserService


# Keep Logfire quiet and local during tests
os.environ.setdefault("LOGFIRE_SEND_TO_LOGFIRE", "false")
os.environ.setdefault("LOGFIRE_CONSOLE", "false")

logger = logging.getLogger(__name__)

TEST_SECRET_KEY = "test-secret-key-for-signing-tokens"
TEST_PASSWORD = "correct-horse"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with a throwaway database, a test signing key and a cheap bcrypt cost."""
    return Settings(
        database_path=str(tmp_path / "taskboard-test.db"),
        secret_key=TEST_SECRET_KEY,
        bcrypt_rounds=4,
        environment="test",
        logfire_token=None,
    )


@pytest.fixture
async def db(settings: Settings) -> AsyncIterator[DBClient]:
    """Connected record store with the schema applied."""
    client = DBClient(settings.database_path)
    await client.connect()
    await init_db(client)
    yield client
    await client.close()


@pytest.fixture
def credentials(settings: Settings) -> CredentialService:
    return CredentialService(settings)


@pytest.fixture
def task_service(db: DBClient) -> TaskService:
    return TaskService(db)


@pytest.fixture
def user_service(db: DBClient, credentials: CredentialService) -> UserService:
    return UserService(db, credentials)


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient]:
    """Test client with the application lifespan (database connect and schema) running."""
    with TestClient(app) as test_client:
        yield test_client


def register_user(
    client: TestClient,
    *,
    name: str = "Alice Example",
    email: str = "alice@example.com",
    password: str = TEST_PASSWORD,
) -> dict[str, Any]:
    """Register through the API and return the ``{user, token}`` body."""
    response = client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def registered(client: TestClient) -> dict[str, Any]:
    return register_user(client)


@pytest.fixture
def auth_headers(registered: dict[str, Any]) -> dict[str, str]:
    return {"Authorization": f"Bearer {registered['token']}"}
