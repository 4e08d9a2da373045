from __future__ import annotations

from datetime import datetime

import pytest

from src.project_hub.project_hub import create_app
from src.project_hub.project_hub.permissions.model import Actor

DEMO_PASSWORDS = {
    "admin@example.com": "admin123",
    "manager@example.com": "manager123",
    "user@example.com": "user123",
    "guest@example.com": "guest123",
}


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app({"AUTO_SEED_DB": True})


@pytest.fixture
def ctx(app):
    """Application context for tests that call services directly."""
    with app.app_context():
        yield app


@pytest.fixture
def container(app):
    return app.extensions["project_hub.container"]


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def actors(app, container):
    """Demo accounts as Actors, keyed by role name."""
    out = {}
    with app.app_context():
        for email in DEMO_PASSWORDS:
            user = container.users_repo.get_by_email(email)
            out[user.role.value] = Actor(user.user_id, user.role)
    return out


@pytest.fixture
def demo_project(app, container):
    with app.app_context():
        return next(p for p in container.projects_repo.list_visible(user_id=None) if p.title == "Demo Project")


def login(client, email: str, password: str = ""):
    return client.post("/login", data={"email": email, "password": password or DEMO_PASSWORDS[email]})


@pytest.fixture
def login_as(client):
    def _login(role: str):
        resp = login(client, f"{role}@example.com")
        assert resp.status_code == 302
        return client

    return _login


@pytest.fixture
def fixed_now() -> datetime:
    """A Monday morning inside working hours."""
    return datetime(2026, 2, 2, 8, 55)
