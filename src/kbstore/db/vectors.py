"""Per-provider sqlite-vec virtual table management."""

from __future__ import annotations

import re
import sqlite3


def provider_to_slug(provider_name: str, dimensions: int) -> str:
    """Convert an embedding provider name + vector size to a table name suffix.

    Examples:
        ("emb-openai", 1536) -> "emb_openai_1536"
        ("Local MiniLM", 384) -> "local_minilm_384"
    """
    return f"{re.sub(r'[^a-z0-9]', '_', provider_name.lower())}_{dimensions}"


def vec_table_name(slug: str) -> str:
    """Return the full vec table name for a provider slug."""
    return f"vec_vectors_{slug}"


def ensure_vec_table(conn: sqlite3.Connection, slug: str, dimensions: int) -> str:
    """Create vec_vectors_{slug} virtual table if it doesn't already exist.

    Args:
        conn: Active database connection (sqlite-vec must be loaded).
        slug: Sanitized identifier (use provider_to_slug() to generate).
        dimensions: Embedding vector dimensions.

    Returns:
        The table name (vec_vectors_{slug}).
    """
    if not re.fullmatch(r"[a-z0-9_]+", slug):
        raise ValueError(
            f"Invalid slug '{slug}': use provider_to_slug() to sanitize."
        )
    if dimensions < 1:
        raise ValueError(f"dimensions must be >= 1, got {dimensions}")

    table = vec_table_name(slug)
    if not vec_table_exists(conn, table):
        conn.execute(
            f"CREATE VIRTUAL TABLE {table} USING vec0(embedding float[{dimensions}])"
        )
        conn.commit()

    return table


def vec_table_exists(conn: sqlite3.Connection, table: str) -> bool:
    return conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?", (table,)
    ).fetchone() is not None
