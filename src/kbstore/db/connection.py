"""Opening the kbstore database file.

Every process opens the file once through ``Database`` and threads the
connection into a ``Repository``. Nothing is cached at module level.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import sqlite_vec

from kbstore.db.migrations import run_migrations

# Seconds a writer waits on a locked database. Two refreshes of the same
# store are not coordinated; they only serialize on SQLite's write lock.
DEFAULT_BUSY_TIMEOUT = 5.0


class Database:
    """The kbstore SQLite file: sqlite-vec loaded, WAL journal, schema migrated.

    Args:
        db_path:      Database file (created if missing).
        busy_timeout: Seconds to wait for a competing writer.
    """

    def __init__(self, db_path: Path | str, busy_timeout: float = DEFAULT_BUSY_TIMEOUT) -> None:
        self.db_path = Path(db_path)
        self.busy_timeout = busy_timeout
        self._conn: sqlite3.Connection | None = None

    def exists(self) -> bool:
        return self.db_path.is_file()

    def connect(self, migrate: bool = True) -> sqlite3.Connection:
        """Open a connection. Pending migrations run unless *migrate* is False."""
        conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout)
        conn.row_factory = sqlite3.Row
        _load_vec(conn)
        conn.execute("PRAGMA journal_mode = WAL")
        if migrate:
            run_migrations(conn)
        return conn

    def __enter__(self) -> sqlite3.Connection:
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *args: object) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None


def _load_vec(conn: sqlite3.Connection) -> None:
    try:
        conn.enable_load_extension(True)
    except AttributeError as exc:
        conn.close()
        raise RuntimeError(
            "This Python's sqlite3 module cannot load extensions; "
            "sqlite-vec is required for the vector index."
        ) from exc
    sqlite_vec.load(conn)
    conn.enable_load_extension(False)
