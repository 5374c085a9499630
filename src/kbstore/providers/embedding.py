"""Embedding clients: turn text sections into vectors via LiteLLM."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from kbstore.errors import ProviderError
from kbstore.providers import llm_client

if TYPE_CHECKING:
    from kbstore.db.models import Provider

# Provider.type -> LiteLLM provider prefix
_LITELLM_PREFIX: dict[str, str] = {
    "OpenAI": "openai",
    "Azure": "azure",
    "Ollama": "ollama",
    "Cohere": "cohere",
    "Gemini": "gemini",
    "Mistral": "mistral",
    "Voyage": "voyage",
    "Hugging Face": "huggingface",
}


@runtime_checkable
class EmbeddingClient(Protocol):
    def embed(self, text: str) -> list[float]: ...


class LiteLLMEmbedding:
    """Embedding client for any backend LiteLLM can reach."""

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        api_base: str | None = None,
        num_retries: int = 3,
    ) -> None:
        self.model = model
        self.api_key = api_key
        self.api_base = api_base
        self.num_retries = num_retries

    def embed(self, text: str) -> list[float]:
        return llm_client.embed(
            self.model,
            text,
            num_retries=self.num_retries,
            api_key=self.api_key,
            api_base=self.api_base,
        )


def litellm_model_for(provider: Provider) -> str:
    """Map a provider record to a LiteLLM model string.

    Examples:
        type="OpenAI", sub_type="text-embedding-3-small" -> "openai/text-embedding-3-small"
        type="Local AI", sub_type="minilm"               -> "local_ai/minilm"
    """
    if not provider.sub_type:
        raise ProviderError(f"Embedding provider '{provider.get_id()}' has no sub type (model).")
    prefix = _LITELLM_PREFIX.get(
        provider.type, provider.type.lower().replace(" ", "_")
    )
    return f"{prefix}/{provider.sub_type}"


def embedding_client_for(provider: Provider, num_retries: int = 3) -> EmbeddingClient:
    """Build the embedding client for *provider*.

    A secret stored on the record is passed to LiteLLM; without one the
    provider's API key environment variable must be set.

    Raises:
        ProviderError: Missing model or missing credentials.
    """
    model = litellm_model_for(provider)
    if not provider.client_secret:
        try:
            llm_client.validate_api_key(model)
        except EnvironmentError as exc:
            raise ProviderError(str(exc)) from exc
    return LiteLLMEmbedding(
        model,
        api_key=provider.client_secret or None,
        api_base=provider.provider_url or None,
        num_retries=num_retries,
    )
