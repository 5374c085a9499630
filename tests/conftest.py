"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from kbstore.db.connection import Database
from kbstore.db.repository import Repository


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema migrated, closed after test."""
    db = Database(tmp_path / ".kbstore.db")
    conn = db.connect()
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)
