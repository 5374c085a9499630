"""kbstore refresh: rebuild a store's vector index.

Resolves the store's storage, model and embedding providers (tenant
defaults for empty references) and embeds new text sections. One batch per
run: OpenAI-type embedding backends get a small batch, re-run to continue.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.progress import Progress, SpinnerColumn, TextColumn

from kbstore.cli.common import console, load_cli_config, open_repo
from kbstore.cli.errors import err_kbstore
from kbstore.errors import KbstoreError
from kbstore.refresh import StoreService


def refresh_cmd(
    store_id: Annotated[str, typer.Argument(help="Store id: <owner>/<name>.")],
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the kbstore database (default from config)."),
    ] = None,
) -> None:
    """Refresh the vectors of a store."""
    config = load_cli_config()
    repo = open_repo(db, config)
    service = StoreService(repo, config)

    console.print(f"\n[bold]→ {store_id}[/]")
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as prog:
            task = prog.add_task("Resolving providers…", total=None)

            def _on_vector(count: int, key: str) -> None:
                prog.update(task, description=f"Embedding {key} ({count} new)")

            ok = service.refresh(store_id, on_progress=_on_vector)
    except KbstoreError as exc:
        console.print(err_kbstore(exc))
        raise typer.Exit(1) from exc
    finally:
        repo.conn.close()

    if ok:
        console.print("  [green]✓[/] Vectors refreshed")
    else:
        console.print("  [dim]↷ Nothing new to embed[/]")
