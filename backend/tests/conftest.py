# tests/conftest.py

from __future__ import annotations

import os

# Must be set before taskdesk is imported: the module-level app builds its
# engine from the environment at import time.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from taskdesk.core.config import Settings
from taskdesk.core.database import Database
from taskdesk.main import create_app

from fakes import FakeEmailSender
from helpers import bearer, login, register


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'taskdesk.sqlite3'}",
        SECRET_KEY="test-secret-key",
        BCRYPT_ROUNDS=4,
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture()
def database(settings: Settings) -> Iterator[Database]:
    database = Database(settings.DATABASE_URL)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture()
def db(database: Database) -> Iterator[Session]:
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture()
def app(settings: Settings, database: Database, email_sender: FakeEmailSender):
    return create_app(settings=settings, database=database, email_sender=email_sender)


@pytest.fixture()
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def admin(client: TestClient) -> dict:
    """An admin account. Request it before other users so it can bootstrap itself."""
    user = register(client, "root", role="admin", permissions=["Read", "Write", "Admin"])
    tokens = login(client, "root")
    return {"user": user, "headers": bearer(tokens["accessToken"]), **tokens}


@pytest.fixture()
def alice(client: TestClient) -> dict:
    user = register(client, "alice")
    tokens = login(client, "alice")
    return {"user": user, "headers": bearer(tokens["accessToken"]), **tokens}


@pytest.fixture()
def bob(client: TestClient) -> dict:
    user = register(client, "bob")
    tokens = login(client, "bob")
    return {"user": user, "headers": bearer(tokens["accessToken"]), **tokens}
