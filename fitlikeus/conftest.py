# fitlikeus/conftest.py
import os

# Must be set before fitlikeus settings are imported
os.environ.setdefault("ENV", "test")
os.environ.setdefault("SKIP_ENV_VALIDATION", "1")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from fitlikeus.core.store import MemoryDocumentStore
from fitlikeus.features.auth.service import AuthService, PasswordResetMailer
from fitlikeus.main import app

STRONG_PASSWORD = "Str0ng!Pass"


@pytest.fixture
def store():
    """Fresh in-memory store bound to the app for one test."""
    store = MemoryDocumentStore()
    app.state.store = store
    app.state.mailer = PasswordResetMailer()
    app.state.billing_provider = None
    yield store
    app.state.store = None
    app.state.billing_provider = None


@pytest.fixture
def client(store):
    return TestClient(app)


@pytest.fixture
def mailer(store):
    return app.state.mailer


@pytest.fixture
def auth_service(store, mailer):
    return AuthService(store, mailer=mailer)


@pytest.fixture
def make_user(auth_service):
    """Create an account and return (headers, profile)."""
    counter = {"n": 0}

    def _make(role="client", email=None, password=STRONG_PASSWORD):
        counter["n"] += 1
        session = auth_service.sign_up(
            email or f"{role}{counter['n']}@example.com",
            password,
            role=role,
        )
        return {"Authorization": f"Bearer {session.token}"}, session.profile

    return _make


@pytest.fixture
def client_user(make_user):
    return make_user("client")


@pytest.fixture
def admin_user(make_user):
    return make_user("admin")
