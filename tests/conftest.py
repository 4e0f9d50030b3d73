"""Shared test fixtures and configuration.

Sets up fake environment variables so homebase.config doesn't sys.exit(),
and provides common fixtures like a temp-file store.
"""

import os

# Patch env vars BEFORE any homebase imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("LLM_API_KEY", "fake-llm-key-for-tests")
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("DATABASE_PATH", ":memory:")

from datetime import date

import pytest


TODAY = date(2026, 3, 10)


@pytest.fixture
def today():
    """A fixed 'today' (a Tuesday) so date arithmetic is reproducible."""
    return TODAY


@pytest.fixture
def user_id():
    return "12345"


@pytest.fixture
def store(tmp_path):
    """Return a SqliteStore backed by a temp file."""
    from homebase.adapters.sqlite_store import SqliteStore
    return SqliteStore(db_path=str(tmp_path / "test_homebase.db"))


@pytest.fixture
def broken_store():
    """A store whose every call raises StoreError."""
    from unittest.mock import MagicMock

    from homebase.ports.store_port import StoreError

    mock = MagicMock()
    for method in ("select", "insert", "update", "upsert", "delete"):
        getattr(mock, method).side_effect = StoreError("database is locked")
    return mock
