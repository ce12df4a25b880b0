"""
tests/conftest.py -- Shared test fixtures for StaffLedger.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + employees
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - client: TestClient over fresh, empty stores
  - auth_client: (client, token, user_id) with a registered user and a token
  - user_store / employee_store: plain in-memory stores for unit tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the TestClient fixtures because sync route handlers run in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. Each fixture instance gets its own uuid-suffixed name,
so tests never see each other's rows.

DEBUG and BCRYPT_ROUNDS must be set before any auth/core import: get_settings()
needs DEBUG to auto-generate SECRET_KEY, and a low bcrypt cost keeps the
suite fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# Set before any auth/core import (see module docstring).
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.store import UserStore
from auth.tokens import hash_password, issue_token
from core.config import get_settings
from employees.store import EmployeeStore

API = get_settings().api_prefix

TEST_PASSWORD = "testpass123"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, EmployeeStore]:
    """Create isolated named shared-memory SQLite stores."""
    users_url = f"sqlite:///file:test_users_{db_suffix}?mode=memory&cache=shared&uri=true"
    employees_url = f"sqlite:///file:test_employees_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=users_url), EmployeeStore(db_url=employees_url)


def _patch_lifespan(user_store: UserStore, employee_store: EmployeeStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.employee_store = employee_store
        yield

    return test_lifespan


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Unit-test stores
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def employee_store() -> Generator[EmployeeStore, None, None]:
    store = EmployeeStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def registered_user(user_store: UserStore) -> User:
    """A user persisted in user_store with password TEST_PASSWORD."""
    user_id = user_store.create_user(
        User(name="Test User", email="tester@company.com", hashed_password=hash_password(TEST_PASSWORD))
    )
    return user_store.get_by_id(user_id)


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """TestClient on the real app with fresh, empty in-memory stores."""
    user_store, employee_store = _make_test_stores(uuid.uuid4().hex)
    app.router.lifespan_context = _patch_lifespan(user_store, employee_store)

    with TestClient(app, raise_server_exceptions=True) as test_client:
        yield test_client

    employee_store.close()
    user_store.close()


@pytest.fixture
def auth_client(client: TestClient) -> tuple[TestClient, str, int]:
    """Yield (client, token, user_id) for routes behind the bearer guard.

    The user is created directly in the store (email "admin@company.com",
    password TEST_PASSWORD) and a token is issued the same way register does.
    """
    store: UserStore = app.state.user_store
    user_id = store.create_user(
        User(name="Admin", email="admin@company.com", hashed_password=hash_password(TEST_PASSWORD))
    )
    _, token = issue_token(store, store.get_by_id(user_id))
    return client, token, user_id
