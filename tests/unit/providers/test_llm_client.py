"""Tests for the LiteLLM client wrapper."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from kbstore.providers.llm_client import embed, get_context_window, validate_api_key


# ------------------------------------------------------------------
# validate_api_key
# ------------------------------------------------------------------


def test_validate_api_key_raises_if_missing(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="OPENAI_API_KEY"):
        validate_api_key("openai/text-embedding-3-small")


def test_validate_api_key_passes_if_set(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key")
    validate_api_key("openai/text-embedding-3-small")


def test_validate_api_key_ollama_no_key_required():
    validate_api_key("ollama/nomic-embed-text")


def test_validate_api_key_unmapped_provider_not_checked():
    validate_api_key("local_ai/minilm")


# ------------------------------------------------------------------
# embed()
# ------------------------------------------------------------------


def _embedding_response(vector):
    response = MagicMock()
    response.data = [{"embedding": vector}]
    return response


def test_embed_returns_vector():
    with patch("kbstore.providers.llm_client.litellm.embedding", return_value=_embedding_response([0.1, 0.2])):
        assert embed("openai/text-embedding-3-small", "hello") == [0.1, 0.2]


def test_embed_passes_retries_and_input():
    with patch(
        "kbstore.providers.llm_client.litellm.embedding", return_value=_embedding_response([0.0])
    ) as mock_emb:
        embed("openai/text-embedding-3-small", "hello", num_retries=5)
    kwargs = mock_emb.call_args.kwargs
    assert kwargs["model"] == "openai/text-embedding-3-small"
    assert kwargs["input"] == ["hello"]
    assert kwargs["num_retries"] == 5
    assert "api_key" not in kwargs
    assert "api_base" not in kwargs


def test_embed_passes_credentials_when_given():
    with patch(
        "kbstore.providers.llm_client.litellm.embedding", return_value=_embedding_response([0.0])
    ) as mock_emb:
        embed("ollama/x", "hi", api_key="k", api_base="http://localhost:11434")
    kwargs = mock_emb.call_args.kwargs
    assert kwargs["api_key"] == "k"
    assert kwargs["api_base"] == "http://localhost:11434"


# ------------------------------------------------------------------
# get_context_window()
# ------------------------------------------------------------------


def test_get_context_window_from_litellm():
    with patch(
        "kbstore.providers.llm_client.litellm.get_model_info",
        return_value={"max_input_tokens": 32_000},
    ):
        assert get_context_window("some-model") == 32_000


def test_get_context_window_fallback_table():
    with patch("kbstore.providers.llm_client.litellm.get_model_info", side_effect=Exception("unknown")):
        assert get_context_window("gpt-3.5-turbo") == 16_384


def test_get_context_window_unknown_model_default():
    with patch("kbstore.providers.llm_client.litellm.get_model_info", side_effect=Exception("unknown")):
        assert get_context_window("mystery") == 8_192


@pytest.mark.parametrize("model,expected", [
    ("openai/text-embedding-3-small", "openai"),
    ("Ollama/nomic", "ollama"),
    ("text-embedding-3-small", "openai"),
    ("huggingface/org/model", "huggingface"),
])
def test_provider_prefix(model, expected):
    from kbstore.providers.llm_client import provider_prefix

    assert provider_prefix(model) == expected
