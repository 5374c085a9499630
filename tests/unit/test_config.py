"""Tests for the kbstore config loader."""

from __future__ import annotations

import stat
import warnings
from pathlib import Path

import pytest
import yaml

from kbstore.config import ConfigError, KbstoreConfig, ensure_global_config, load_config


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("KBSTORE_DB_PATH", "KBSTORE_STORAGE_ROOT", "KBSTORE_ADMIN_OWNER"):
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing" / "config.yaml")

    assert cfg.database.path == ".kbstore.db"
    assert cfg.storage.root == "."
    assert cfg.tenancy.admin_owner == "admin"
    assert cfg.refresh.default_batch_limit == 100_000
    assert cfg.refresh.rate_limited_batch_limit == 3
    assert cfg.refresh.rate_limited_types == ["OpenAI"]
    assert cfg.embedding.num_retries == 3


def test_dataclass_defaults_match_loader_defaults(tmp_path: Path) -> None:
    assert load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml") == KbstoreConfig()


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


def test_global_overrides_defaults(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"tenancy": {"admin_owner": "root"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.tenancy.admin_owner == "root"
    assert cfg.refresh.default_batch_limit == 100_000


def test_global_empty_file(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("# nothing here\n", encoding="utf-8")

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.tenancy.admin_owner == "admin"


def test_project_overrides_global(tmp_path: Path) -> None:
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"refresh": {"rate_limited_batch_limit": 5, "default_batch_limit": 500}})
    _write_yaml(tmp_path / "kbstore.yaml", {"refresh": {"rate_limited_batch_limit": 2}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.refresh.rate_limited_batch_limit == 2
    assert cfg.refresh.default_batch_limit == 500  # global value preserved


def test_rate_limited_types_override(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "kbstore.yaml", {"refresh": {"rate_limited_types": ["OpenAI", "Azure"]}})
    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert cfg.refresh.rate_limited_types == ["OpenAI", "Azure"]


def test_env_overrides_project(tmp_path: Path, monkeypatch) -> None:
    _write_yaml(tmp_path / "kbstore.yaml", {"database": {"path": "project.db"}, "storage": {"root": "files"}})
    monkeypatch.setenv("KBSTORE_DB_PATH", "/tmp/env.db")
    monkeypatch.setenv("KBSTORE_STORAGE_ROOT", "/srv/files")
    monkeypatch.setenv("KBSTORE_ADMIN_OWNER", "ops")

    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert cfg.database.path == "/tmp/env.db"
    assert cfg.storage.root == "/srv/files"
    assert cfg.tenancy.admin_owner == "ops"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("key", ["api_key", "client_secret", "password", "token", "credentials"])
def test_global_config_rejects_credentials(tmp_path: Path, key: str) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"embedding": {key: "sk-123"}})

    with pytest.raises(ConfigError, match="forbidden key"):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_global_config_allows_batch_settings(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"refresh": {"rate_limited_batch_limit": 4}, "embedding": {"num_retries": 1}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.refresh.rate_limited_batch_limit == 4
    assert cfg.embedding.num_retries == 1


def test_non_positive_batch_limit_rejected(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "kbstore.yaml", {"refresh": {"default_batch_limit": 0}})
    with pytest.raises(ConfigError, match="default_batch_limit"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


def test_admin_owner_with_separator_rejected(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "kbstore.yaml", {"tenancy": {"admin_owner": "a/b"}})
    with pytest.raises(ConfigError, match="admin_owner"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


def test_unknown_section_warns(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "kbstore.yaml", {"bogus": {"x": 1}})
    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter("always")
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert any("bogus" in str(warning.message) for warning in w)


# ---------------------------------------------------------------------------
# ensure_global_config
# ---------------------------------------------------------------------------


def test_ensure_global_config_creates_file(tmp_path: Path) -> None:
    target = tmp_path / ".kbstore" / "config.yaml"
    path = ensure_global_config(target)
    assert path == target
    assert target.exists()
    assert stat.S_IMODE(target.stat().st_mode) == 0o600
    data = yaml.safe_load(target.read_text(encoding="utf-8"))
    assert data["refresh"]["rate_limited_types"] == ["OpenAI"]


def test_ensure_global_config_does_not_overwrite(tmp_path: Path) -> None:
    target = tmp_path / "config.yaml"
    target.write_text("tenancy:\n  admin_owner: custom\n", encoding="utf-8")
    ensure_global_config(target)
    assert "custom" in target.read_text(encoding="utf-8")


def test_generated_global_config_loads_cleanly(tmp_path: Path) -> None:
    target = ensure_global_config(tmp_path / "config.yaml")
    cfg = load_config(project_dir=tmp_path, global_config_path=target)
    assert cfg == KbstoreConfig()


def test_unknown_section_key_warns(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "kbstore.yaml", {"refresh": {"batch": 5}})
    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter("always")
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert any("refresh.batch" in str(warning.message) for warning in w)


def test_non_integer_value_rejected(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "kbstore.yaml", {"refresh": {"rate_limited_batch_limit": "three"}})
    with pytest.raises(ConfigError, match="must be an integer"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


def test_section_must_be_mapping(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "kbstore.yaml", {"storage": "docs"})
    with pytest.raises(ConfigError, match="must be a mapping"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


def test_rate_limited_types_must_be_list(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "kbstore.yaml", {"refresh": {"rate_limited_types": "OpenAI"}})
    with pytest.raises(ConfigError, match="must be a list"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


def test_negative_retries_rejected(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "kbstore.yaml", {"embedding": {"num_retries": -1}})
    with pytest.raises(ConfigError, match="num_retries"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
