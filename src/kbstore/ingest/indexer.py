"""Vector indexer: embeds a store's files into the vector index.

For each supported object under the prefix:
1. Decode the object as UTF-8 text and split it into sections sized for
   the store's model.
2. Skip sections this embedding provider already indexed for the store
   (same owner, store, provider, file, index, text).
3. Embed the section with the embedding client and store the vector row
   plus its embedding via ``Repository.add_vector()``.

A run stops after ``limit`` new vectors; re-running continues where the
previous run stopped because stored sections are skipped.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import PurePosixPath
from typing import Protocol

from kbstore.db.models import Vector
from kbstore.db.repository import Repository
from kbstore.db.vectors import ensure_vec_table, provider_to_slug
from kbstore.errors import ProviderError
from kbstore.ingest.splitter import section_tokens_for, split_text
from kbstore.providers.embedding import EmbeddingClient
from kbstore.providers.storage import StorageClient

SUPPORTED_EXTENSIONS = frozenset(
    {".txt", ".md", ".markdown", ".csv", ".json", ".log", ".rst", ".html", ".htm"}
)

ProgressCallback = Callable[[int, str], None]


class VectorPipeline(Protocol):
    """Boundary the refresh orchestrator delegates to."""

    def add_vectors(
        self,
        storage: StorageClient,
        embedder: EmbeddingClient,
        prefix: str,
        store_name: str,
        provider_name: str,
        model_sub_type: str,
        limit: int,
    ) -> bool: ...


def is_supported(key: str) -> bool:
    return PurePosixPath(key).suffix.lower() in SUPPORTED_EXTENSIONS


class VectorIndexer:
    """Default ``VectorPipeline`` backed by the kbstore database.

    Built for one owner: every vector it reads or writes is scoped to it.

    Args:
        repo:        Open Repository instance.
        owner:       Owner of the stores this indexer fills.
        on_progress: Called after each stored vector with the running count
                     and the file key.
    """

    def __init__(
        self, repo: Repository, owner: str, on_progress: ProgressCallback | None = None
    ) -> None:
        self._repo = repo
        self._owner = owner
        self._on_progress = on_progress

    def add_vectors(
        self,
        storage: StorageClient,
        embedder: EmbeddingClient,
        prefix: str,
        store_name: str,
        provider_name: str,
        model_sub_type: str,
        limit: int,
    ) -> bool:
        """Index up to *limit* new sections. Returns True if any vector was added."""
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        section_tokens = section_tokens_for(model_sub_type)
        table: str | None = None
        added = 0

        for obj in storage.list_objects(prefix):
            if not is_supported(obj.key):
                continue
            text = storage.get_object(obj.key).decode("utf-8", errors="replace")

            for index, section in enumerate(split_text(text, section_tokens)):
                if self._repo.vector_exists(
                    self._owner, store_name, provider_name, obj.key, index, section
                ):
                    continue

                embedding = embedder.embed(section)
                if not embedding:
                    raise ProviderError(
                        f"Embedding provider '{provider_name}' returned an empty vector."
                    )
                if table is None:
                    table = ensure_vec_table(
                        self._repo.conn,
                        provider_to_slug(provider_name, len(embedding)),
                        len(embedding),
                    )

                self._repo.add_vector(
                    Vector(
                        owner=self._owner,
                        store=store_name,
                        provider=provider_name,
                        file=obj.key,
                        index=index,
                        text=section,
                        size=len(section),
                        dimension=len(embedding),
                    ),
                    table,
                    embedding,
                )
                added += 1
                if self._on_progress is not None:
                    self._on_progress(added, obj.key)
                if added >= limit:
                    return True

        return added > 0
