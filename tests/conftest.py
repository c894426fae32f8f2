"""
Shared fixtures for the API test suite.

Every test gets a fresh app bound to an in-memory SQLite database, so no
state leaks between tests and nothing is written to ``data/``.
"""
import pytest

from trackman import create_app
from trackman.config import TestConfig
from trackman.models import db


@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def register(client):
    """Register a user and return (user dict, auth headers)."""
    def _register(email="alice@example.com", name="Alice", password="secret123"):
        response = client.post("/api/auth/register", json={"email": email, "name": name, "password": password})
        assert response.status_code == 201, response.get_json()
        data = response.get_json()["data"]
        return data["user"], {"Authorization": f"Bearer {data['token']}"}
    return _register


@pytest.fixture
def auth(register):
    return register()[1]


@pytest.fixture
def other_auth(register):
    return register(email="bob@example.com", name="Bob")[1]
