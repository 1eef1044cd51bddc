"""
tests/conftest.py -- Shared test fixtures for SmartBee unit and integration tests.

This module provides:
  - engine / account_store / hive_store / manager: per-test in-memory stores
  - make_account: factory inserting account rows directly (legacy plaintext allowed)
  - api_client: TestClient whose lifespan wires isolated stores into app.state

Design: unit fixtures use plain "sqlite:///:memory:". SQLAlchemy pools one
connection per thread for that URL, so every store call in a test sees the
same database. The API fixture instead uses a named shared-memory URI,
because TestClient runs sync route handlers on worker threads and a plain
:memory: DB would be blank on each of them.

RATE_LIMIT_ENABLED must be set before any api import: the limiter reads it
once at module load, and the login tests call the endpoint far more than the
production limit allows.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# Set before any api/ or core/ import so get_settings() sees them.
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DEBUG", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.main import app
from apiary.store import HiveStore
from auth.accounts import AccountManager
from auth.models import Account
from auth.passwords import hash_password
from auth.store import AccountStore
from core.database import create_db_engine, init_schema

# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database with the schema and default roles."""
    eng = create_db_engine("sqlite:///:memory:")
    init_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def account_store(engine: Engine) -> AccountStore:
    return AccountStore(engine)


@pytest.fixture
def hive_store(engine: Engine) -> HiveStore:
    return HiveStore(engine)


@pytest.fixture
def manager(account_store: AccountStore) -> AccountManager:
    return AccountManager(account_store)


def _make_account(
    store: AccountStore,
    account_id: str = "USR_ANA",
    given_name: str = "Ana",
    family_name: str = "Soto",
    secret: str = "s3cret",
    role: str = "ADM",
    hashed: bool = True,
    active: bool = True,
) -> Account:
    """Insert an account row directly, bypassing AccountManager.

    hashed=False stores the secret as plaintext, the way pre-hashing rows
    look in the legacy database.
    """
    account = Account(
        id=account_id,
        given_name=given_name,
        family_name=family_name,
        locality="Chillán",
        role=role,
        password_material=hash_password(secret) if hashed else secret,
        active=active,
    )
    store.insert_account(account)
    return account


@pytest.fixture
def make_account():
    """Factory fixture: make_account(store, account_id=..., secret=..., hashed=...)."""
    return _make_account


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(engine: Engine):
    """Return a lifespan that wires stores built on the test engine into app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.engine = engine
        app.state.account_store = AccountStore(engine)
        app.state.account_manager = AccountManager(app.state.account_store)
        app.state.hive_store = HiveStore(engine)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, AccountStore], None, None]:
    """Yield (client, account_store) backed by a module-private shared-memory DB.

    The store is handed back so tests can seed rows the API cannot create
    (legacy plaintext passwords) and inspect stored password material.
    """
    db_name = f"test_{request.module.__name__.rsplit('.', 1)[-1]}"
    eng = create_db_engine(f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true")
    init_schema(eng)

    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(eng)
    try:
        with TestClient(app, raise_server_exceptions=True) as client:
            yield client, AccountStore(eng)
    finally:
        app.router.lifespan_context = original_lifespan
        eng.dispose()
