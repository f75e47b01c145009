"""
tests/conftest.py -- Shared test fixtures for TaskPro auth tests.

This module provides:
  - store / notifier / authority: unit-level fixtures over an in-memory SQLite DB
  - api_client: TestClient over the real FastAPI app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
TestClient because route handlers run in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
Each test gets its own DB name so session state never leaks between tests.

DEBUG and BCRYPT_ROUNDS must be set before any api/core import so
get_settings() auto-generates signing keys and hashing stays fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any api/core import so get_settings() can
# auto-generate the signing keys in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from helpers import RecordingNotifier, make_authority

from api.main import app
from auth.session import SessionAuthority
from auth.store import UserStore

# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def authority(store, notifier, tmp_path) -> SessionAuthority:
    return make_authority(store, notifier, tmp_path / "avatars")


# ---------------------------------------------------------------------------
# Integration fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(authority: SessionAuthority):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-built test authority into app.state so routes see an
    isolated DB and the recording notifier.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.authority = authority
        app.state.avatars = authority.avatars
        yield

    return test_lifespan


@pytest.fixture
def api_client(tmp_path) -> Generator[tuple[TestClient, RecordingNotifier], None, None]:
    """Yield (client, notifier) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers and the real exception boundary.
    """
    db_url = f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    user_store = UserStore(db_url)
    recording = RecordingNotifier()
    authority = make_authority(user_store, recording, tmp_path / "avatars")

    app.router.lifespan_context = _patch_lifespan(authority)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, recording

    user_store.close()
