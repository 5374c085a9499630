"""Tests for kbstore provider commands."""

from __future__ import annotations

from typer.testing import CliRunner

from kbstore.cli.main import app

runner = CliRunner()


def test_add_provider(db_path, db_repo):
    result = runner.invoke(app, [
        "provider", "add", "admin/emb",
        "--category", "Embedding",
        "--type", "OpenAI",
        "--sub-type", "text-embedding-3-small",
        "--default",
        "--max-batch-size", "10",
    ])
    assert result.exit_code == 0, result.output

    provider = db_repo.get_provider("admin/emb")
    assert provider.category == "Embedding"
    assert provider.type == "OpenAI"
    assert provider.is_default is True
    assert provider.max_batch_size == 10
    assert db_repo.get_default_embedding_provider().name == "emb"


def test_add_provider_secret_from_env(db_path, db_repo, monkeypatch):
    monkeypatch.setenv("KBSTORE_PROVIDER_SECRET", "sk-env")
    runner.invoke(app, ["provider", "add", "admin/emb", "-c", "Embedding", "-t", "OpenAI"])
    assert db_repo.get_provider("admin/emb").client_secret == "sk-env"


def test_add_provider_invalid_category(db_path):
    result = runner.invoke(app, ["provider", "add", "admin/x", "--category", "Bogus", "--type", "OpenAI"])
    assert result.exit_code != 0


def test_add_provider_duplicate(db_path):
    args = ["provider", "add", "admin/emb", "-c", "Embedding", "-t", "OpenAI"]
    runner.invoke(app, args)
    result = runner.invoke(app, args)
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_add_provider_invalid_id(db_path):
    result = runner.invoke(app, ["provider", "add", "a/b/c", "-c", "Model", "-t", "OpenAI"])
    assert result.exit_code == 1


def test_list_defaults_to_admin_owner(db_path):
    runner.invoke(app, ["provider", "add", "admin/global", "-c", "Model", "-t", "OpenAI"])
    runner.invoke(app, ["provider", "add", "acme/mine", "-c", "Model", "-t", "OpenAI"])

    result = runner.invoke(app, ["provider", "list"])
    assert "admin/global" in result.output
    assert "acme/mine" not in result.output

    result = runner.invoke(app, ["provider", "list", "--owner", "acme"])
    assert "acme/mine" in result.output


def test_list_empty(db_path):
    result = runner.invoke(app, ["provider", "list"])
    assert result.exit_code == 0
    assert "No providers found" in result.output
