"""The single LiteLLM seam: embedding calls, key checks, context windows.

Retries are LiteLLM's own (``num_retries`` with exponential backoff).
"""

from __future__ import annotations

import os

import litellm

litellm.suppress_debug_info = True

# LiteLLM provider prefix -> API key variable; None means keyless (local).
_KEY_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "huggingface": "HUGGINGFACE_API_KEY",
    "ollama": None,
}

# Input windows for models LiteLLM's registry may not know by bare name.
_CONTEXT_WINDOWS: dict[str, int] = {
    "gpt-4o": 128_000,
    "gpt-4o-mini": 128_000,
    "gpt-4-turbo": 128_000,
    "gpt-3.5-turbo": 16_384,
    "claude-3-5-sonnet-20241022": 200_000,
    "claude-3-5-haiku-20241022": 200_000,
}
_UNKNOWN_CONTEXT_WINDOW = 8_192


def provider_prefix(model: str) -> str:
    """Return the LiteLLM provider part of *model* (bare names are OpenAI's)."""
    return model.split("/", 1)[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Fail early when the key variable LiteLLM will read for *model* is unset.

    Raises:
        EnvironmentError: The provider needs a key and none is set.
    """
    prefix = provider_prefix(model)
    env_var = _KEY_ENV.get(prefix)
    if env_var is not None and not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{prefix}'. "
            f"Set the {env_var} environment variable."
        )


def embed(
    model: str,
    text: str,
    num_retries: int = 3,
    api_key: str | None = None,
    api_base: str | None = None,
) -> list[float]:
    """Embed one text section.

    Args:
        model: LiteLLM model string, ``provider/model``.
        text: Section to embed.
        num_retries: LiteLLM retries on transient errors.
        api_key: Key from the provider record; LiteLLM reads the environment when None.
        api_base: Endpoint from the provider record (self-hosted or proxy).

    Returns:
        The embedding vector.
    """
    credentials = {}
    if api_key:
        credentials["api_key"] = api_key
    if api_base:
        credentials["api_base"] = api_base
    response = litellm.embedding(model=model, input=[text], num_retries=num_retries, **credentials)
    return response.data[0]["embedding"]


def get_context_window(model: str) -> int:
    """Return the input window of *model* in tokens.

    LiteLLM's model registry first, then a small table of common bare
    names, then 8192.
    """
    try:
        info = litellm.get_model_info(model)
    except Exception:
        return _CONTEXT_WINDOWS.get(model, _UNKNOWN_CONTEXT_WINDOW)
    return info.get("max_input_tokens") or info.get("max_tokens") or _UNKNOWN_CONTEXT_WINDOW
