"""Forward-only migration runner for the kbstore schema.

Vec tables (vec_vectors_*) are created on demand by ensure_vec_table(), not here.
"""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

_V1_SQL = """
CREATE TABLE IF NOT EXISTS stores (
    owner               TEXT NOT NULL,
    name                TEXT NOT NULL,
    created_time        TEXT NOT NULL DEFAULT '',
    display_name        TEXT NOT NULL DEFAULT '',
    storage_provider    TEXT NOT NULL DEFAULT '',
    model_provider      TEXT NOT NULL DEFAULT '',
    embedding_provider  TEXT NOT NULL DEFAULT '',
    frequency           INTEGER NOT NULL DEFAULT 0,
    limit_minutes       INTEGER NOT NULL DEFAULT 0,
    welcome             TEXT NOT NULL DEFAULT '',
    prompt              TEXT NOT NULL DEFAULT '',
    file_tree           TEXT,
    properties_map      TEXT NOT NULL DEFAULT '{}',
    PRIMARY KEY (owner, name)
);

CREATE TABLE IF NOT EXISTS providers (
    owner           TEXT NOT NULL,
    name            TEXT NOT NULL,
    created_time    TEXT NOT NULL DEFAULT '',
    display_name    TEXT NOT NULL DEFAULT '',
    category        TEXT NOT NULL,
    type            TEXT NOT NULL,
    sub_type        TEXT NOT NULL DEFAULT '',
    client_id       TEXT NOT NULL DEFAULT '',
    client_secret   TEXT NOT NULL DEFAULT '',
    provider_url    TEXT NOT NULL DEFAULT '',
    is_default      INTEGER NOT NULL DEFAULT 0,
    max_batch_size  INTEGER,
    PRIMARY KEY (owner, name)
);

CREATE TABLE IF NOT EXISTS vectors (
    store           TEXT NOT NULL,
    provider        TEXT NOT NULL,
    file            TEXT NOT NULL,
    section_index   INTEGER NOT NULL,
    text            TEXT NOT NULL,
    size            INTEGER NOT NULL DEFAULT 0,
    dimension       INTEGER NOT NULL DEFAULT 0,
    created_time    DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_vectors_store_file
    ON vectors (store, file, section_index);
"""

# v2: vectors are scoped by owner as well as store name, and deduplicated
# per embedding provider.
_V2_SQL = """
ALTER TABLE vectors ADD COLUMN owner TEXT NOT NULL DEFAULT '';

DROP INDEX IF EXISTS idx_vectors_store_file;

CREATE INDEX IF NOT EXISTS idx_vectors_section
    ON vectors (owner, store, provider, file, section_index);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
    (2, _V2_SQL),
]

LATEST_VERSION = MIGRATIONS[-1][0]


def current_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied migration, 0 for an empty database."""
    conn.execute(_CREATE_SCHEMA_VERSION)
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] if row[0] is not None else 0


def run_migrations(conn: sqlite3.Connection) -> list[int]:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.

    Returns:
        The versions applied by this call (empty when already up to date).
    """
    current = current_version(conn)
    conn.commit()

    applied: list[int] = []
    for version, sql in MIGRATIONS:
        if version <= current:
            continue
        conn.executescript(sql)
        conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
        conn.commit()
        applied.append(version)
    return applied
