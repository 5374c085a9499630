"""Shared helpers for kbstore commands: config + database opening."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from kbstore.cli.errors import err_no_db
from kbstore.config import ConfigError, KbstoreConfig, load_config
from kbstore.db.connection import Database
from kbstore.db.repository import Repository

console = Console()


def load_cli_config() -> KbstoreConfig:
    """Load config, turning ConfigError into an exit code 1."""
    try:
        return load_config()
    except ConfigError as exc:
        console.print(f"[red]Error:[/] {exc}")
        raise typer.Exit(1) from exc


def open_repo(db: Path | None, config: KbstoreConfig) -> Repository:
    """Open the existing database (path from *db* or config) wrapped in a Repository."""
    database = Database(db if db is not None else Path(config.database.path))
    if not database.exists():
        console.print(err_no_db(str(database.db_path)))
        raise typer.Exit(1)
    return Repository(database.connect(), admin_owner=config.tenancy.admin_owner)
