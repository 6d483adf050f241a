"""Shared test fixtures and configuration.

Sets up environment variables before any src imports so src.config loads
a local SQLite configuration, and provides a temp-file store.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("DATA_PROVIDER", "sqlite")
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("TIMEZONE", "UTC")
os.environ.setdefault("API_BASE_URL", "")

import pytest


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_lovebirds.db")


@pytest.fixture
def store(tmp_db_path):
    """Return a SQLiteStore instance backed by a temp file."""
    from src.adapters.sqlite_store import SQLiteStore
    return SQLiteStore(db_path=tmp_db_path)
