"""Fixtures for CLI tests: isolated cwd, global config and database."""

from __future__ import annotations

from pathlib import Path

import pytest

from kbstore.db.connection import Database
from kbstore.db.repository import Repository


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch):
    """Run every command in tmp_path with no user-level config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("kbstore.config._GLOBAL_CONFIG_PATH", tmp_path / "global" / "config.yaml")
    for var in ("KBSTORE_DB_PATH", "KBSTORE_STORAGE_ROOT", "KBSTORE_ADMIN_OWNER", "KBSTORE_PROVIDER_SECRET"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Initialized database at the default location."""
    path = tmp_path / ".kbstore.db"
    conn = Database(path).connect()
    conn.close()
    return path


@pytest.fixture
def db_repo(db_path: Path):
    """Repository on the CLI's database, for arranging and checking state."""
    conn = Database(db_path).connect()
    yield Repository(conn)
    conn.close()
