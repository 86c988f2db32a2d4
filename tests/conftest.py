"""Shared fixtures: an in-memory SQLite database and a TestClient bound to it."""

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.database import Database
from app.main import create_app
from app.repositories.bug_repository import BugRepository


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        ENVIRONMENT="testing",
        LOG_LEVEL="WARNING",
        LOG_FILE=None,
        CREATE_TABLES_ON_STARTUP=True,
    )


@pytest.fixture
def database(settings):
    db = Database.from_settings(settings)
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    db = database.session()
    yield db
    db.close()


@pytest.fixture
def repository(session):
    return BugRepository(session)


@pytest.fixture
def client(settings, database):
    app = create_app(settings, database=database)
    with TestClient(app) as test_client:
        yield test_client


def make_bug_payload(**overrides):
    payload = {
        "title": "Test Bug",
        "description": "This is a test bug description",
        "status": "open",
        "priority": "medium",
        "reporter": "Test User",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def bug_payload():
    return make_bug_payload


@pytest.fixture
def created_bug(client):
    res = client.post("/api/bugs", json=make_bug_payload())
    assert res.status_code == 201
    return res.json()["data"]
