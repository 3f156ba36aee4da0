"""
tests/conftest.py -- Shared test fixtures for SessionGate tests.

This module provides:
  - hasher / auth_config / store / manager: unit-level collaborators over a
    private in-memory SQLite DB per test
  - register_input(): RegisterInput factory with unique emails
  - api_client: TestClient wired to an isolated store via a patched lifespan

Design: the API fixture uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread.

Environment variables must be set before any api/ import so the module-level
get_settings() call sees the test host, secrets and bcrypt cost.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import timedelta

# Set before importing api/ -- Settings are read once at module load.
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret-0123456789abcdef")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-0123456789abcdef")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.hashing import CredentialHasher
from auth.models import RegisterInput
from auth.session import SessionManager
from auth.store import UserStore
from core.config import AuthConfig

ACCESS_SECRET = "unit-access-secret-0123456789abcdef"
REFRESH_SECRET = "unit-refresh-secret-0123456789abcdef"

# ---------------------------------------------------------------------------
# Unit-level collaborators
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def hasher() -> CredentialHasher:
    """bcrypt at its minimum cost (4) -- correctness is identical, runtime is not."""
    return CredentialHasher(rounds=4)


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(
        access_secret=ACCESS_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_secret=REFRESH_SECRET,
        refresh_ttl=timedelta(days=7),
    )


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def manager(store: UserStore, hasher: CredentialHasher, auth_config: AuthConfig) -> SessionManager:
    return SessionManager(store, hasher, auth_config)


def register_input(**overrides) -> RegisterInput:
    """Build a valid RegisterInput with a unique email unless one is given."""
    fields = {
        "branch": "north",
        "display_name": "Ada",
        "email": f"user-{uuid.uuid4().hex[:8]}@x.com",
        "phone_number": None,
        "role": "staff",
        "password": "longenough1",
    }
    fields.update(overrides)
    return RegisterInput(**fields)


# ---------------------------------------------------------------------------
# API integration fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store: UserStore, config: AuthConfig):
    """Return an async context manager that replaces the real lifespan.

    Wires a pre-created test store into app.state so TestClient routes see an
    isolated test DB rather than the production database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.auth_config = config
        app.state.user_store = user_store
        app.state.session_manager = SessionManager(user_store, CredentialHasher(rounds=4), config)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient running the real app against an isolated in-memory store.

    Module-scoped for speed: tests sharing it must use unique emails.
    """
    db_name = f"test_auth_{uuid.uuid4().hex[:8]}"
    user_store = UserStore(f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true")
    config = AuthConfig(
        access_secret=ACCESS_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_secret=REFRESH_SECRET,
        refresh_ttl=timedelta(days=7),
    )

    app.router.lifespan_context = _patch_lifespan(user_store, config)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    user_store.close()
