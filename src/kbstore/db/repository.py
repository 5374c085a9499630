"""Repository pattern for all kbstore database operations.

Single interface for: stores, provider records, vectors (rows + vec tables).
Vec tables are provider-managed (ensure_vec_table); repository handles read + write.
"""

from __future__ import annotations

import json
import sqlite3

from kbstore.db.models import (
    CATEGORY_EMBEDDING,
    CATEGORY_MODEL,
    CATEGORY_STORAGE,
    File,
    Properties,
    Provider,
    Store,
    Vector,
)
from kbstore.ids import get_owner_and_name_from_id

_STORE_COLUMNS = (
    "owner, name, created_time, display_name, storage_provider, model_provider, "
    "embedding_provider, frequency, limit_minutes, welcome, prompt, file_tree, properties_map"
)

_PROVIDER_COLUMNS = (
    "owner, name, created_time, display_name, category, type, sub_type, "
    "client_id, client_secret, provider_url, is_default, max_batch_size"
)

_VECTOR_COLUMNS = (
    "rowid, owner, store, provider, file, section_index, text, size, dimension, created_time"
)

# KNN candidates fetched per requested result before filtering by store.
_SEARCH_OVERSAMPLE = 10


class Repository:
    """Data access layer for all kbstore entities.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use. Lookups return ``None`` for a missing
    record; ``sqlite3.Error`` propagates unchanged.
    """

    def __init__(self, conn: sqlite3.Connection, admin_owner: str = "admin") -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection from ``Database.connect()``
                (sqlite-vec loaded, schema migrated).
            admin_owner: Owner whose provider records act as the defaults
                for every tenant.
        """
        self._conn = conn
        self.admin_owner = admin_owner

    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------

    def get_global_stores(self) -> list[Store]:
        """Return every store, owner ascending then newest first."""
        rows = self._conn.execute(
            f"SELECT {_STORE_COLUMNS} FROM stores ORDER BY owner ASC, created_time DESC"
        ).fetchall()
        return [_row_to_store(r) for r in rows]

    def get_stores(self, owner: str) -> list[Store]:
        """Return the stores of *owner*, newest first."""
        rows = self._conn.execute(
            f"SELECT {_STORE_COLUMNS} FROM stores WHERE owner = ? ORDER BY created_time DESC",
            (owner,),
        ).fetchall()
        return [_row_to_store(r) for r in rows]

    def get_default_store(self, owner: str) -> Store | None:
        """Return the default store of *owner*.

        The first store (newest first) that has a storage provider set wins;
        otherwise the newest store; ``None`` if the owner has no stores.
        """
        stores = self.get_stores(owner)
        for store in stores:
            if store.storage_provider != "":
                return store
        return stores[0] if stores else None

    def get_store(self, store_id: str) -> Store | None:
        """Return a store by its ``owner/name`` id, or None if not found."""
        owner, name = get_owner_and_name_from_id(store_id)
        return self._get_store(owner, name)

    def _get_store(self, owner: str, name: str) -> Store | None:
        row = self._conn.execute(
            f"SELECT {_STORE_COLUMNS} FROM stores WHERE owner = ? AND name = ?",
            (owner, name),
        ).fetchone()
        return _row_to_store(row) if row else None

    def add_store(self, store: Store) -> bool:
        """Insert a new store. Returns True if a row was written.

        Raises:
            sqlite3.IntegrityError: If (owner, name) already exists.
        """
        cur = self._conn.execute(
            f"INSERT INTO stores ({_STORE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            _store_params(store),
        )
        self._conn.commit()
        return cur.rowcount != 0

    def update_store(self, store_id: str, store: Store | None) -> bool:
        """Overwrite every column of the store at *store_id* with *store*.

        The owner and name are overwritten too, so this also renames.
        There is no version check: concurrent updates are last-writer-wins.

        Returns:
            False if *store* is None or the target does not exist,
            otherwise whether the write affected a row.
        """
        owner, name = get_owner_and_name_from_id(store_id)
        if store is None or self._get_store(owner, name) is None:
            return False

        cur = self._conn.execute(
            """
            UPDATE stores SET
                owner = ?, name = ?, created_time = ?, display_name = ?,
                storage_provider = ?, model_provider = ?, embedding_provider = ?,
                frequency = ?, limit_minutes = ?, welcome = ?, prompt = ?,
                file_tree = ?, properties_map = ?
            WHERE owner = ? AND name = ?
            """,
            (*_store_params(store), owner, name),
        )
        self._conn.commit()
        return cur.rowcount != 0

    def delete_store(self, store: Store) -> bool:
        """Delete a store by (owner, name) together with its vectors.

        Returns False if no store matched.
        """
        self._delete_vectors(store.owner, store.name)
        cur = self._conn.execute(
            "DELETE FROM stores WHERE owner = ? AND name = ?", (store.owner, store.name)
        )
        self._conn.commit()
        return cur.rowcount != 0

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def add_provider(self, provider: Provider) -> bool:
        """Insert a provider record. Returns True if a row was written."""
        cur = self._conn.execute(
            f"INSERT INTO providers ({_PROVIDER_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                provider.owner,
                provider.name,
                provider.created_time,
                provider.display_name,
                provider.category,
                provider.type,
                provider.sub_type,
                provider.client_id,
                provider.client_secret,
                provider.provider_url,
                int(provider.is_default),
                provider.max_batch_size,
            ),
        )
        self._conn.commit()
        return cur.rowcount != 0

    def get_provider(self, provider_id: str) -> Provider | None:
        """Return a provider by its ``owner/name`` id, or None if not found."""
        owner, name = get_owner_and_name_from_id(provider_id)
        row = self._conn.execute(
            f"SELECT {_PROVIDER_COLUMNS} FROM providers WHERE owner = ? AND name = ?",
            (owner, name),
        ).fetchone()
        return _row_to_provider(row) if row else None

    def get_providers(self, owner: str) -> list[Provider]:
        """Return the provider records of *owner*, newest first."""
        rows = self._conn.execute(
            f"SELECT {_PROVIDER_COLUMNS} FROM providers WHERE owner = ? ORDER BY created_time DESC",
            (owner,),
        ).fetchall()
        return [_row_to_provider(r) for r in rows]

    def delete_provider(self, provider: Provider) -> bool:
        """Delete a provider by (owner, name). Returns False if nothing matched."""
        cur = self._conn.execute(
            "DELETE FROM providers WHERE owner = ? AND name = ?",
            (provider.owner, provider.name),
        )
        self._conn.commit()
        return cur.rowcount != 0

    def get_default_storage_provider(self) -> Provider | None:
        """Return the admin owner's storage provider, preferring one marked default."""
        row = self._conn.execute(
            f"""
            SELECT {_PROVIDER_COLUMNS} FROM providers
            WHERE owner = ? AND category = ?
            ORDER BY is_default DESC, created_time ASC
            LIMIT 1
            """,
            (self.admin_owner, CATEGORY_STORAGE),
        ).fetchone()
        return _row_to_provider(row) if row else None

    def get_default_model_provider(self) -> Provider | None:
        return self._get_default_provider(CATEGORY_MODEL)

    def get_default_embedding_provider(self) -> Provider | None:
        return self._get_default_provider(CATEGORY_EMBEDDING)

    def _get_default_provider(self, category: str) -> Provider | None:
        row = self._conn.execute(
            f"""
            SELECT {_PROVIDER_COLUMNS} FROM providers
            WHERE owner = ? AND category = ? AND is_default = 1
            ORDER BY created_time ASC
            LIMIT 1
            """,
            (self.admin_owner, category),
        ).fetchone()
        return _row_to_provider(row) if row else None

    # ------------------------------------------------------------------
    # Vectors
    # ------------------------------------------------------------------
    # Every vector lookup is scoped by (owner, store): store names are only
    # unique within a tenant.

    def add_vector(self, vector: Vector, table: str, embedding: list[float]) -> int:
        """Insert a vector row + its embedding (vec rowid = vector rowid). Returns the rowid."""
        cur = self._conn.execute(
            """
            INSERT INTO vectors (owner, store, provider, file, section_index, text, size, dimension)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                vector.owner,
                vector.store,
                vector.provider,
                vector.file,
                vector.index,
                vector.text,
                vector.size,
                vector.dimension,
            ),
        )
        rowid = cur.lastrowid
        self._conn.execute(
            f"INSERT INTO {table}(rowid, embedding) VALUES (?, ?)",
            (rowid, json.dumps(embedding)),
        )
        self._conn.commit()
        vector.id = rowid
        return rowid

    def vector_exists(
        self, owner: str, store: str, provider: str, file: str, index: int, text: str
    ) -> bool:
        """Return True if *provider* already embedded this exact section of *file* for the store."""
        row = self._conn.execute(
            """
            SELECT 1 FROM vectors
            WHERE owner = ? AND store = ? AND provider = ?
              AND file = ? AND section_index = ? AND text = ?
            LIMIT 1
            """,
            (owner, store, provider, file, index, text),
        ).fetchone()
        return row is not None

    def get_vector(self, rowid: int) -> Vector | None:
        row = self._conn.execute(
            f"SELECT {_VECTOR_COLUMNS} FROM vectors WHERE rowid = ?", (rowid,)
        ).fetchone()
        return _row_to_vector(row) if row else None

    def get_vectors(self, owner: str, store: str) -> list[Vector]:
        """Return the vectors of the store ordered by file, section, then provider."""
        rows = self._conn.execute(
            f"""
            SELECT {_VECTOR_COLUMNS} FROM vectors
            WHERE owner = ? AND store = ?
            ORDER BY file, section_index, provider
            """,
            (owner, store),
        ).fetchall()
        return [_row_to_vector(r) for r in rows]

    def count_vectors(self, owner: str, store: str) -> int:
        return self._conn.execute(
            "SELECT COUNT(*) FROM vectors WHERE owner = ? AND store = ?", (owner, store)
        ).fetchone()[0]

    def search_vectors(
        self, table: str, owner: str, store: str, embedding: list[float], limit: int = 10
    ) -> list[tuple[Vector, float]]:
        """Nearest-neighbour search within one store. Returns (vector, distance) sorted by distance."""
        vec_rows = self._conn.execute(
            f"SELECT rowid, distance FROM {table} WHERE embedding MATCH ? AND k = ? ORDER BY distance",
            (json.dumps(embedding), limit * _SEARCH_OVERSAMPLE),
        ).fetchall()

        results: list[tuple[Vector, float]] = []
        for vec_row in vec_rows:
            vector = self.get_vector(vec_row["rowid"])
            if vector is not None and vector.owner == owner and vector.store == store:
                results.append((vector, vec_row["distance"]))
                if len(results) == limit:
                    break
        return results

    def delete_vectors_by_store(self, owner: str, store: str) -> int:
        """Delete the vectors of the store from the vectors table and every vec table.

        Returns the number of vector rows deleted.
        """
        deleted = self._delete_vectors(owner, store)
        self._conn.commit()
        return deleted

    def _delete_vectors(self, owner: str, store: str) -> int:
        rowids = [
            r[0]
            for r in self._conn.execute(
                "SELECT rowid FROM vectors WHERE owner = ? AND store = ?", (owner, store)
            ).fetchall()
        ]
        if not rowids:
            return 0

        vec_tables = [
            r[0]
            for r in self._conn.execute(
                """
                SELECT name FROM sqlite_master
                WHERE type='table' AND name LIKE 'vec_vectors_%'
                  AND sql LIKE 'CREATE VIRTUAL TABLE%'
                """
            ).fetchall()
        ]

        placeholders = ",".join("?" * len(rowids))
        for table in vec_tables:
            self._conn.execute(
                f"DELETE FROM [{table}] WHERE rowid IN ({placeholders})",  # noqa: S608
                rowids,
            )
        cur = self._conn.execute(
            "DELETE FROM vectors WHERE owner = ? AND store = ?", (owner, store)
        )
        return cur.rowcount


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------

def _store_params(store: Store) -> tuple:
    return (
        store.owner,
        store.name,
        store.created_time,
        store.display_name,
        store.storage_provider,
        store.model_provider,
        store.embedding_provider,
        store.frequency,
        store.limit_minutes,
        store.welcome,
        store.prompt,
        store.file_tree_json,
        store.properties_map_json,
    )


def _row_to_store(row: sqlite3.Row) -> Store:
    file_tree = json.loads(row["file_tree"]) if row["file_tree"] else None
    properties = json.loads(row["properties_map"] or "{}")
    return Store(
        owner=row["owner"],
        name=row["name"],
        created_time=row["created_time"],
        display_name=row["display_name"],
        storage_provider=row["storage_provider"],
        model_provider=row["model_provider"],
        embedding_provider=row["embedding_provider"],
        frequency=row["frequency"],
        limit_minutes=row["limit_minutes"],
        welcome=row["welcome"],
        prompt=row["prompt"],
        file_tree=File.from_dict(file_tree) if file_tree else None,
        properties_map={k: Properties.from_dict(v) for k, v in properties.items()},
    )


def _row_to_provider(row: sqlite3.Row) -> Provider:
    return Provider(
        owner=row["owner"],
        name=row["name"],
        created_time=row["created_time"],
        display_name=row["display_name"],
        category=row["category"],
        type=row["type"],
        sub_type=row["sub_type"],
        client_id=row["client_id"],
        client_secret=row["client_secret"],
        provider_url=row["provider_url"],
        is_default=bool(row["is_default"]),
        max_batch_size=row["max_batch_size"],
    )


def _row_to_vector(row: sqlite3.Row) -> Vector:
    return Vector(
        id=row["rowid"],
        owner=row["owner"],
        store=row["store"],
        provider=row["provider"],
        file=row["file"],
        index=row["section_index"],
        text=row["text"],
        size=row["size"],
        dimension=row["dimension"],
        created_time=row["created_time"],
    )
