"""Store vector refresh orchestration.

``refresh_store_vectors`` resolves the store's three providers, picks a
batch limit for the embedding backend and hands off to the vector
pipeline. One attempt per call: no retry, no rollback, no locking.
"""

from __future__ import annotations

from kbstore.config import KbstoreConfig
from kbstore.db.models import File, Provider, Store, Vector
from kbstore.db.repository import Repository
from kbstore.db.vectors import provider_to_slug, vec_table_exists, vec_table_name
from kbstore.errors import ProviderError, StoreNotFoundError
from kbstore.files import build_file_tree
from kbstore.ingest.indexer import ProgressCallback, VectorIndexer, VectorPipeline
from kbstore.providers.resolver import ProviderResolver


def batch_limit_for(provider: Provider, config: KbstoreConfig | None = None) -> int:
    """Return how many sections one refresh may embed with *provider*.

    ``provider.max_batch_size`` wins when set; otherwise rate-limited
    backend types (``OpenAI`` by default) get the small limit and every
    other type the default limit.
    """
    cfg = (config or KbstoreConfig()).refresh
    if provider.max_batch_size is not None and provider.max_batch_size > 0:
        return provider.max_batch_size
    if provider.type in cfg.rate_limited_types:
        return cfg.rate_limited_batch_limit
    return cfg.default_batch_limit


def refresh_store_vectors(
    store: Store,
    resolver: ProviderResolver,
    pipeline: VectorPipeline,
    config: KbstoreConfig | None = None,
) -> bool:
    """Rebuild the vector index of *store*.

    Any resolution or client error is raised unchanged before the pipeline
    is reached. The pipeline's result (or exception) is passed through.

    Returns:
        The pipeline's success flag.
    """
    cfg = config or KbstoreConfig()

    storage = resolver.resolve_storage_provider(store)
    model_provider = resolver.resolve_model_provider(store)
    embedding_provider = resolver.resolve_embedding_provider(store)
    embedder = embedding_provider.get_embedding_client(num_retries=cfg.embedding.num_retries)

    limit = batch_limit_for(embedding_provider, cfg)

    return pipeline.add_vectors(
        storage,
        embedder,
        "",
        store.name,
        embedding_provider.name,
        model_provider.sub_type,
        limit,
    )


class StoreService:
    """Store operations that need provider resolution, addressed by store id.

    Args:
        repo:   Open Repository instance.
        config: Loaded configuration.
    """

    def __init__(self, repo: Repository, config: KbstoreConfig | None = None) -> None:
        self._repo = repo
        self._config = config or KbstoreConfig()
        self.resolver = ProviderResolver(repo, self._config)

    def get_store(self, store_id: str) -> Store:
        store = self._repo.get_store(store_id)
        if store is None:
            raise StoreNotFoundError(store_id)
        return store

    def refresh(self, store_id: str, on_progress: ProgressCallback | None = None) -> bool:
        """Refresh the vectors of the store at *store_id*."""
        store = self.get_store(store_id)
        pipeline = VectorIndexer(self._repo, store.owner, on_progress=on_progress)
        return refresh_store_vectors(store, self.resolver, pipeline, self._config)

    def search(self, store_id: str, query: str, limit: int = 5) -> list[tuple[Vector, float]]:
        """Return the store's sections nearest to *query*, closest first.

        The query is embedded with the store's embedding provider, and only
        that provider's vectors are searched. Nothing indexed yet means no
        results.
        """
        store = self.get_store(store_id)
        provider = self.resolver.resolve_embedding_provider(store)
        embedder = provider.get_embedding_client(num_retries=self._config.embedding.num_retries)
        embedding = embedder.embed(query)
        if not embedding:
            raise ProviderError(f"Embedding provider '{provider.name}' returned an empty vector.")

        table = vec_table_name(provider_to_slug(provider.name, len(embedding)))
        if not vec_table_exists(self._repo.conn, table):
            return []
        return self._repo.search_vectors(table, store.owner, store.name, embedding, limit)

    def list_files(self, store_id: str) -> File:
        """Build the store's file tree from its storage provider's current listing."""
        return self._build_tree(self.get_store(store_id))

    def sync_file_tree(self, store_id: str) -> File:
        """Rebuild the file tree and save it on the store (full-column update)."""
        store = self.get_store(store_id)
        store.file_tree = self._build_tree(store)
        self._repo.update_store(store_id, store)
        return store.file_tree

    def _build_tree(self, store: Store) -> File:
        storage = self.resolver.resolve_storage_provider(store)
        return build_file_tree(storage.list_objects(""), title=store.name)
