"""kbstore provider clients and resolution."""

from kbstore.providers.embedding import EmbeddingClient, LiteLLMEmbedding, embedding_client_for
from kbstore.providers.resolver import ProviderResolver
from kbstore.providers.storage import (
    LOCAL_FILE_SYSTEM,
    LocalFileStorage,
    StorageClient,
    StorageObject,
    new_storage_client,
    storage_client_for,
)

__all__ = [
    "EmbeddingClient",
    "LOCAL_FILE_SYSTEM",
    "LiteLLMEmbedding",
    "LocalFileStorage",
    "ProviderResolver",
    "StorageClient",
    "StorageObject",
    "embedding_client_for",
    "new_storage_client",
    "storage_client_for",
]
