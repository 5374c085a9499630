"""kbstore configuration loader.

Priority (high → low):
  1. CLI flags           (handled at the call site, not in this module)
  2. Environment variables  (KBSTORE_DB_PATH, KBSTORE_STORAGE_ROOT, KBSTORE_ADMIN_OWNER)
  3. Per-project kbstore.yaml
  4. Global ~/.kbstore/config.yaml  (no credentials)
  5. Hardcoded defaults

Provider credentials belong in provider records or environment variables,
never in the global config file.
All YAML reads use yaml.safe_load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".kbstore"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "kbstore.yaml"

# Fields that suggest a credential; forbidden in global config.
# Does NOT match legitimate keys like max_batch_size or num_retries.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class DatabaseCfg:
    """kbstore.yaml: database:"""

    path: str = ".kbstore.db"


@dataclass
class StorageCfg:
    """Storage configuration (kbstore.yaml: storage:).

    Attributes:
        root: Base directory for storage references that are not registered
            providers; relative references resolve against it.
    """

    root: str = "."


@dataclass
class TenancyCfg:
    """kbstore.yaml: tenancy:"""

    admin_owner: str = "admin"


@dataclass
class RefreshCfg:
    """Vector refresh batching (kbstore.yaml: refresh:).

    Attributes:
        default_batch_limit: Sections embedded per refresh for tolerant backends.
        rate_limited_batch_limit: Sections embedded per refresh for backends
            listed in ``rate_limited_types``.
        rate_limited_types: Provider types with tight per-call limits.
    """

    default_batch_limit: int = 100_000
    rate_limited_batch_limit: int = 3
    rate_limited_types: list[str] = field(default_factory=lambda: ["OpenAI"])


@dataclass
class EmbeddingCfg:
    """kbstore.yaml: embedding:"""

    num_retries: int = 3


@dataclass
class KbstoreConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    database: DatabaseCfg = field(default_factory=DatabaseCfg)
    storage: StorageCfg = field(default_factory=StorageCfg)
    tenancy: TenancyCfg = field(default_factory=TenancyCfg)
    refresh: RefreshCfg = field(default_factory=RefreshCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _credential_keys(obj: Any, path: str = "") -> list[str]:
    """Return the dotted paths of every credential-like key in *obj*."""
    if not isinstance(obj, dict):
        return []
    found: list[str] = []
    for k, v in obj.items():
        full = f"{path}.{k}" if path else str(k)
        if _API_KEY_RE.search(str(k)):
            found.append(full)
        found.extend(_credential_keys(v, full))
    return found


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any credential-like key names."""
    found = _credential_keys(data)
    if found:
        raise ConfigError(
            f"Global config '{source}' contains a forbidden key '{found[0]}'.\n"
            "  Store the secret on the provider record instead:\n"
            "    kbstore provider add <owner>/<name> ... --client-secret <value>\n"
            "  or export it as the provider's API key variable (e.g. OPENAI_API_KEY)."
        )


def _validate(cfg: KbstoreConfig) -> None:
    if cfg.refresh.default_batch_limit < 1:
        raise ConfigError(
            f"refresh.default_batch_limit must be >= 1, got {cfg.refresh.default_batch_limit}"
        )
    if cfg.refresh.rate_limited_batch_limit < 1:
        raise ConfigError(
            "refresh.rate_limited_batch_limit must be >= 1, "
            f"got {cfg.refresh.rate_limited_batch_limit}"
        )
    if cfg.embedding.num_retries < 0:
        raise ConfigError(f"embedding.num_retries must be >= 0, got {cfg.embedding.num_retries}")
    if "/" in cfg.tenancy.admin_owner or not cfg.tenancy.admin_owner:
        raise ConfigError(
            f"tenancy.admin_owner must be a non-empty name without '/': '{cfg.tenancy.admin_owner}'"
        )


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised sections and section keys."""
    for key, value in data.items():
        cls = _SECTIONS.get(key)
        if cls is None:
            unknown = [key]
        elif isinstance(value, dict):
            known = {f.name for f in fields(cls)}
            unknown = [f"{key}.{k}" for k in value if k not in known]
        else:
            unknown = []
        for name in unknown:
            warnings.warn(
                f"Unknown config key '{name}' in '{source}', ignored.",
                UserWarning,
                stacklevel=4,
            )


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------

_SECTIONS: dict[str, type] = {
    "database": DatabaseCfg,
    "storage": StorageCfg,
    "tenancy": TenancyCfg,
    "refresh": RefreshCfg,
    "embedding": EmbeddingCfg,
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _coerce(section: str, key: str, default: Any, value: Any) -> Any:
    """Convert a raw YAML *value* to the type of the field's *default*."""
    if isinstance(default, list):
        if not isinstance(value, list):
            raise ConfigError(f"{section}.{key} must be a list, got {value!r}")
        return [str(v) for v in value]
    if isinstance(default, int):
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{section}.{key} must be an integer, got {value!r}") from exc
    return str(value)


def _section_from_dict(section: str, raw: Any) -> Any:
    cls = _SECTIONS[section]
    if not isinstance(raw, dict):
        raise ConfigError(f"Config section '{section}' must be a mapping, got {raw!r}")
    defaults = cls()
    values = {
        f.name: _coerce(section, f.name, getattr(defaults, f.name), raw[f.name])
        for f in fields(cls)
        if f.name in raw
    }
    return cls(**values)


def _cfg_from_dict(data: dict[str, Any]) -> KbstoreConfig:
    """Build a *KbstoreConfig* from a merged raw YAML dict."""
    cfg = KbstoreConfig()
    for section in _SECTIONS:
        if section in data:
            setattr(cfg, section, _section_from_dict(section, data[section]))
    return cfg


def _apply_env_overrides(cfg: KbstoreConfig) -> KbstoreConfig:
    """Apply KBSTORE_* environment variable overrides."""
    if path := os.environ.get("KBSTORE_DB_PATH"):
        cfg.database.path = path
    if root := os.environ.get("KBSTORE_STORAGE_ROOT"):
        cfg.storage.root = root
    if owner := os.environ.get("KBSTORE_ADMIN_OWNER"):
        cfg.tenancy.admin_owner = owner
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _read_layer(path: Path, *, is_global: bool) -> dict[str, Any]:
    """Parse one YAML layer; a missing file is an empty layer."""
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping at the top level.")
    if is_global:
        _check_no_api_keys(data, path)
    _warn_unknown_keys(data, path)
    return data


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> KbstoreConfig:
    """Load and return a merged *KbstoreConfig*.

    Layers: defaults, then the global file, then ``kbstore.yaml`` in
    *project_dir* (CWD by default), then ``KBSTORE_*`` variables.

    Args:
        project_dir: Directory to search for *kbstore.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains credential-like fields, or a
            value is malformed or out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged = _deep_merge(
        _read_layer(global_path, is_global=True),
        _read_layer(search_dir / _PROJECT_CONFIG_NAME, is_global=False),
    )
    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg


_GLOBAL_HEADER = """\
# kbstore global configuration. No credentials here.
# Provider secrets live in provider records or environment variables.

"""


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.kbstore/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        defaults = KbstoreConfig()
        body = yaml.safe_dump(
            {"tenancy": asdict(defaults.tenancy), "refresh": asdict(defaults.refresh)},
            sort_keys=False,
        )
        target.write_text(_GLOBAL_HEADER + body, encoding="utf-8")
        target.chmod(0o600)

    return target
