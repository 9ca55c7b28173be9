"""
tests/conftest.py -- Shared test fixtures for authgate.

This module provides:
  - user_store: isolated in-memory credential store per test
  - session_store: fresh InMemorySessionStore per test
  - client: TestClient over the real app with the lifespan swapped for one
    that wires the two stores above into app.state
  - login(): helper that logs in and returns the signed cookie value

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

DEBUG must be set before any auth/core import so get_settings() can
auto-generate SESSION_SECRET in dev mode instead of raising ValueError.
BCRYPT_ROUNDS is lowered to keep the suite fast; test_config covers the default.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.passwords import hash_password
from auth.sessions import InMemorySessionStore
from auth.store import UserStore
from core.config import get_settings

COOKIE_NAME = get_settings().session_cookie_name


def _patch_lifespan(user_store: UserStore, session_store: InMemorySessionStore):
    """Return an async context manager that replaces the real lifespan.

    The purge_task is a long-sleeping coroutine; a real asyncio.Task is
    required because shutdown calls .cancel() on it.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.session_store = session_store
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore(db_url=f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")
    yield store
    store.close()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore(ttl_seconds=get_settings().session_ttl_seconds)


@pytest.fixture
def client(user_store: UserStore, session_store: InMemorySessionStore) -> Generator[TestClient, None, None]:
    """TestClient over the real app, backed by this test's stores."""
    app.router.lifespan_context = _patch_lifespan(user_store, session_store)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture
def alice(user_store: UserStore) -> User:
    """A stored user: alice / a@x.com / secret1."""
    uid = user_store.create_user(User(username="alice", email="a@x.com", password_hash=hash_password("secret1")))
    return user_store.get_by_id(uid)


def session_cookie_from(resp) -> str:
    """Extract the session cookie value from a response's Set-Cookie header."""
    for header in resp.headers.get_list("set-cookie"):
        name, _, rest = header.partition("=")
        if name.strip() == COOKIE_NAME:
            return rest.split(";", 1)[0].strip('"')
    raise AssertionError(f"No {COOKIE_NAME} cookie in response")


def cookie_header(value: str) -> dict[str, str]:
    return {"Cookie": f"{COOKIE_NAME}={value}"}


def login(client: TestClient, username: str, password: str) -> str:
    """Log in and return the signed cookie value.

    The client's own cookie jar is cleared so every later request in the test
    carries exactly the cookie it is given, nothing implicit.
    """
    resp = client.post("/api/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    value = session_cookie_from(resp)
    client.cookies.clear()
    return value
