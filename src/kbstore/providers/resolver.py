"""Resolve a store's provider references to provider records and clients.

An empty reference means "tenant default". A named reference is looked up
under the store's own owner. Only storage has a raw-string fallback; model
and embedding references must name an existing record of that category.
"""

from __future__ import annotations

from kbstore.config import KbstoreConfig
from kbstore.db.models import (
    CATEGORY_EMBEDDING,
    CATEGORY_MODEL,
    CATEGORY_STORAGE,
    Provider,
    Store,
)
from kbstore.db.repository import Repository
from kbstore.errors import ProviderNotFoundError
from kbstore.ids import get_id_from_owner_and_name
from kbstore.providers.storage import StorageClient, new_storage_client


class ProviderResolver:
    """Read-only provider resolution for stores.

    Args:
        repo:   Open Repository instance.
        config: Loaded configuration (storage root for relative locations).
    """

    def __init__(self, repo: Repository, config: KbstoreConfig | None = None) -> None:
        self._repo = repo
        self._config = config or KbstoreConfig()

    def resolve_storage_provider(self, store: Store) -> StorageClient:
        """Return the storage client for *store*.

        A reference that names no provider record is used as a raw storage
        location; building that client never fails for a non-empty name.

        Raises:
            ProviderNotFoundError: No default storage provider when the store
                leaves the reference empty.
            StorageClientError: A registered provider has an unsupported type.
        """
        root = self._config.storage.root
        if store.storage_provider == "":
            provider = self._repo.get_default_storage_provider()
            if provider is None:
                raise ProviderNotFoundError(CATEGORY_STORAGE)
            return provider.get_storage_client(root)

        # Provider names never contain the id separator; paths may.
        if "/" not in store.storage_provider:
            provider_id = get_id_from_owner_and_name(store.owner, store.storage_provider)
            provider = self._repo.get_provider(provider_id)
            if provider is not None and provider.category == CATEGORY_STORAGE:
                return provider.get_storage_client(root)

        return new_storage_client(store.storage_provider, root)

    def resolve_model_provider(self, store: Store) -> Provider:
        """Return the model provider record for *store* (tenant default if unset)."""
        return self._resolve(store, store.model_provider, CATEGORY_MODEL)

    def resolve_embedding_provider(self, store: Store) -> Provider:
        """Return the embedding provider record for *store* (tenant default if unset)."""
        return self._resolve(store, store.embedding_provider, CATEGORY_EMBEDDING)

    def _resolve(self, store: Store, reference: str, category: str) -> Provider:
        if reference == "":
            if category == CATEGORY_MODEL:
                provider = self._repo.get_default_model_provider()
            else:
                provider = self._repo.get_default_embedding_provider()
            if provider is None:
                raise ProviderNotFoundError(category)
            return provider

        provider_id = get_id_from_owner_and_name(store.owner, reference)
        provider = self._repo.get_provider(provider_id)
        # A record of another category does not satisfy the reference.
        if provider is None or provider.category != category:
            raise ProviderNotFoundError(category, provider_id)
        return provider
