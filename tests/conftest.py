"""
tests/conftest.py -- Shared test fixtures for the Content API.

This module provides:
  - FakeDirectory: an in-process stand-in for the LDAP directory with the same
    connect()/verify()/lookup_attribute() surface as auth.directory.DirectoryClient
  - engine / sessions / content: stores on an isolated in-memory database
  - issuer + clock: a TokenIssuer whose issue time the test controls
  - login_service: LoginService wired to the fakes, with the session store
    wrapped in a MagicMock spy so tests can count inserts and updates
  - client: TestClient running the real app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. Each test gets its own database name so state never leaks.

The DEBUG env var must be set before any api/ import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager, contextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

# CRITICAL: Set DEBUG before any api/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.login import LoginService
from auth.store import SessionStore
from auth.tokens import TokenIssuer
from content.store import ContentStore
from core.db import make_engine
from core.errors import DirectoryUnavailableError

TEST_SECRET_KEY = "test-secret-key-that-is-at-least-32-characters-long"

ACCOUNTS = {
    "z1111111": ("correct-horse", "Alice"),
    "z2222222": ("battery-staple", "Bob"),
}


# ---------------------------------------------------------------------------
# Fake directory
# ---------------------------------------------------------------------------


class FakeDirectoryConnection:
    def __init__(self, directory: FakeDirectory) -> None:
        self.directory = directory
        self.bound = False
        self.closed = False

    def verify(self, identifier: str, secret: str) -> bool:
        self.directory.calls.append(("verify", identifier))
        if self.directory.unavailable:
            raise DirectoryUnavailableError("The directory service is unavailable.")
        account = self.directory.accounts.get(identifier)
        self.bound = account is not None and bool(secret) and account[0] == secret
        return self.bound

    def lookup_attribute(self, identifier: str, attribute: str) -> str | None:
        self.directory.calls.append(("lookup", identifier, attribute))
        if self.directory.lookup_fails:
            raise DirectoryUnavailableError("The directory service is unavailable.")
        account = self.directory.accounts.get(identifier)
        return account[1] if account else None


class FakeDirectory:
    """Records every call and every connection so tests can assert on them."""

    def __init__(self, accounts: dict[str, tuple[str, str]]) -> None:
        self.accounts = dict(accounts)
        self.calls: list[tuple] = []
        self.connections: list[FakeDirectoryConnection] = []
        self.unavailable = False
        self.lookup_fails = False

    @contextmanager
    def connect(self):
        conn = FakeDirectoryConnection(self)
        self.connections.append(conn)
        try:
            yield conn
        finally:
            conn.closed = True


class FakeClock:
    """Callable clock for TokenIssuer; starts at the real current time."""

    def __init__(self) -> None:
        self.now = datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Store and service fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    url = f"sqlite:///file:test_content_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    eng = make_engine(url)
    yield eng
    eng.dispose()


@pytest.fixture
def sessions(engine) -> SessionStore:
    return SessionStore(engine)


@pytest.fixture
def content(engine) -> ContentStore:
    return ContentStore(engine)


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory(ACCOUNTS)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def secret_key() -> str:
    return TEST_SECRET_KEY


@pytest.fixture
def issuer(secret_key: str, clock: FakeClock) -> TokenIssuer:
    return TokenIssuer(secret_key, timedelta(hours=24), clock=clock)


@pytest.fixture
def sessions_spy(sessions: SessionStore) -> MagicMock:
    """The real SessionStore behind a MagicMock that records insert/update calls."""
    return MagicMock(wraps=sessions)


@pytest.fixture
def login_service(directory, issuer, sessions_spy) -> LoginService:
    return LoginService(directory, issuer, sessions_spy)


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


def _patch_lifespan(engine, content: ContentStore, sessions: SessionStore, issuer, directory, service):
    """Return an async context manager that replaces the real lifespan.

    Wires the test stores and fakes into app.state so routes see an isolated
    database and never contact a real directory.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.engine = engine
        app.state.content = content
        app.state.sessions = sessions
        app.state.token_issuer = issuer
        app.state.directory = directory
        app.state.login_service = service
        app.state.max_list_limit = 100
        yield

    return test_lifespan


@pytest.fixture
def client(engine, content, sessions, issuer, directory) -> Generator[TestClient, None, None]:
    service = LoginService(directory, issuer, sessions)
    app.router.lifespan_context = _patch_lifespan(engine, content, sessions, issuer, directory, service)
    limiter.enabled = False
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    limiter.enabled = True
