"""Tests for kbstore refresh."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from kbstore.cli.main import app
from kbstore.db.models import Provider, Store

runner = CliRunner()


@pytest.fixture
def configured(db_repo, tmp_path):
    """Store t1/s1 on a docs directory with default model and embedding providers."""
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "a.md").write_text("alpha", encoding="utf-8")
    db_repo.add_provider(Provider(owner="admin", name="gpt", category="Model", type="OpenAI", is_default=True))
    db_repo.add_provider(
        Provider(owner="admin", name="emb", category="Embedding", type="OpenAI",
                 sub_type="text-embedding-3-small", client_secret="sk-test", is_default=True)
    )
    db_repo.add_store(Store(owner="t1", name="s1", storage_provider="docs"))
    return db_repo


def test_refresh_runs_pipeline_with_openai_limit(configured):
    with patch("kbstore.refresh.VectorIndexer") as mock_indexer:
        mock_indexer.return_value.add_vectors.return_value = True
        result = runner.invoke(app, ["refresh", "t1/s1"])

    assert result.exit_code == 0, result.output
    assert "Vectors refreshed" in result.output
    args = mock_indexer.return_value.add_vectors.call_args.args
    assert args[2:] == ("", "s1", "emb", "", 3)


def test_refresh_nothing_new(configured):
    with patch("kbstore.refresh.VectorIndexer") as mock_indexer:
        mock_indexer.return_value.add_vectors.return_value = False
        result = runner.invoke(app, ["refresh", "t1/s1"])
    assert result.exit_code == 0
    assert "Nothing new" in result.output


def test_refresh_embeds_files(configured):
    with patch("kbstore.providers.embedding.llm_client.embed", return_value=[0.1, 0.2, 0.3]):
        result = runner.invoke(app, ["refresh", "t1/s1"])
    assert result.exit_code == 0, result.output
    vectors = configured.get_vectors("t1", "s1")
    assert [(v.file, v.text, v.provider) for v in vectors] == [("a.md", "alpha", "emb")]


def test_refresh_unknown_store(db_path):
    result = runner.invoke(app, ["refresh", "t1/ghost"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_refresh_missing_embedding_provider(db_repo, tmp_path):
    (tmp_path / "docs").mkdir()
    db_repo.add_provider(Provider(owner="admin", name="gpt", category="Model", type="OpenAI", is_default=True))
    db_repo.add_store(Store(owner="t1", name="s1", storage_provider="docs", embedding_provider="ghost"))

    with patch("kbstore.refresh.VectorIndexer") as mock_indexer:
        result = runner.invoke(app, ["refresh", "t1/s1"])

    assert result.exit_code == 1
    assert "t1/ghost" in result.output
    mock_indexer.return_value.add_vectors.assert_not_called()
