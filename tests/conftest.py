"""
Shared fixtures: every test gets a fresh application on an in-memory
database and its own upload directory.
"""

import os
import tempfile

# Settings are read when allone is first imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "testing"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["UPLOAD_SWEEP_INTERVAL_MINUTES"] = "0"
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="allone-uploads-")

import pytest
from fastapi.testclient import TestClient

from allone.core.config import settings
from allone.models.user import User, UserRole
from tests.helpers import register


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    return settings.get_upload_dir()


@pytest.fixture
def app(upload_dir):
    from allone.main import create_app

    return create_app()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def database(app, client):
    return app.state.database


@pytest.fixture
def user(client):
    return register(client, "Ayşe Yılmaz", "ayse@school.edu")


@pytest.fixture
def other_user(client):
    return register(client, "Mehmet Demir", "mehmet@school.edu")


@pytest.fixture
def admin(client, database):
    data = register(client, "Site Admin", "admin@school.edu")
    with database.session() as db:
        db.get(User, data["user"]["id"]).role = UserRole.ADMIN
    return data
