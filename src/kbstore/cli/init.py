"""kbstore init: create the database and config scaffold.

Creates:
  .kbstore.db              : empty database with schema
  kbstore.yaml             : project config
  ~/.kbstore/config.yaml   : global config (created once, mode 0o600)
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from kbstore.cli.common import console
from kbstore.config import ensure_global_config
from kbstore.db.connection import Database
from kbstore.db.migrations import current_version, run_migrations

_DB_NAME = ".kbstore.db"

_PROJECT_YAML = """\
# kbstore project configuration
database:
  path: .kbstore.db

storage:
  root: .

refresh:
  default_batch_limit: 100000
  rate_limited_batch_limit: 3
  rate_limited_types: [OpenAI]
"""


def init_cmd(
    project_dir: Annotated[
        Path,
        typer.Argument(help="Directory to initialize. Defaults to current directory."),
    ] = Path("."),
    global_config: Annotated[
        Path | None,
        typer.Option("--global-config", hidden=True, help="Override global config path (for testing)."),
    ] = None,
) -> None:
    """Initialize a kbstore database and config in PROJECT_DIR."""
    project_dir = project_dir.resolve()
    project_dir.mkdir(parents=True, exist_ok=True)

    database = Database(project_dir / _DB_NAME)
    existed = database.exists()
    conn = database.connect(migrate=False)
    try:
        applied = run_migrations(conn)
        version = current_version(conn)
    finally:
        conn.close()
    if existed and not applied:
        console.print(f"  [dim]↷ {database.db_path} exists, schema v{version} up to date[/]")
    elif existed:
        console.print(f"  [green]✓[/] {database.db_path} migrated to schema v{version}")
    else:
        console.print(f"  [green]✓[/] {database.db_path} (schema v{version})")

    yaml_path = project_dir / "kbstore.yaml"
    if not yaml_path.exists():
        yaml_path.write_text(_PROJECT_YAML, encoding="utf-8")
        console.print(f"  [green]✓[/] {yaml_path}")

    cfg_path = ensure_global_config(global_config)
    console.print(f"  [green]✓[/] {cfg_path} (global config)")

    console.print("\nNext steps:")
    console.print("  1. kbstore provider add admin/<name> --category Embedding --type OpenAI --sub-type text-embedding-3-small --default")
    console.print("  2. kbstore store add <owner>/<name> --storage-provider <dir>")
    console.print("  3. kbstore refresh <owner>/<name>")
