"""kbstore store CLI commands.

Commands:
  kbstore store list [--owner]      list stores (all tenants or one)
  kbstore store add <owner/name>    register a store
  kbstore store show <owner/name>   show a store's settings
  kbstore store files <owner/name>  list the files in the store's storage
  kbstore store search <owner/name> <query>
  kbstore store delete <owner/name> (also removes its vectors)
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from kbstore.cli.common import console, load_cli_config, open_repo
from kbstore.cli.errors import err_kbstore, err_store_exists, err_store_not_found
from kbstore.db.models import File, Store
from kbstore.errors import KbstoreError
from kbstore.ids import get_current_time, get_owner_and_name_from_id
from kbstore.refresh import StoreService

store_app = typer.Typer(
    name="store",
    help="Manage stores (list, add, show, files, search, delete).",
    add_completion=False,
)

_DbOption = Annotated[
    Path | None,
    typer.Option("--db", help="Path to the kbstore database (default from config)."),
]


@store_app.command("list")
def store_list_cmd(
    owner: Annotated[
        str | None,
        typer.Option("--owner", "-o", help="Only list stores of this owner."),
    ] = None,
    db: _DbOption = None,
) -> None:
    """List stores, newest first."""
    repo = open_repo(db, load_cli_config())
    try:
        stores = repo.get_stores(owner) if owner else repo.get_global_stores()
    finally:
        repo.conn.close()

    if not stores:
        console.print("[yellow]No stores found.[/]")
        raise typer.Exit(0)

    table = Table(title="Stores", show_header=True, header_style="bold")
    table.add_column("Id", style="bold", no_wrap=True)
    table.add_column("Display name")
    table.add_column("Storage")
    table.add_column("Model")
    table.add_column("Embedding")
    table.add_column("Created")
    for store in stores:
        table.add_row(
            store.get_id(),
            store.display_name,
            store.storage_provider or "[dim]default[/]",
            store.model_provider or "[dim]default[/]",
            store.embedding_provider or "[dim]default[/]",
            store.created_time,
        )
    console.print(table)


@store_app.command("add")
def store_add_cmd(
    store_id: Annotated[str, typer.Argument(help="Store id: <owner>/<name>.")],
    display_name: Annotated[str, typer.Option("--display-name", help="Human-readable name.")] = "",
    storage_provider: Annotated[
        str, typer.Option("--storage-provider", help="Storage provider name or directory.")
    ] = "",
    model_provider: Annotated[str, typer.Option("--model-provider", help="Model provider name.")] = "",
    embedding_provider: Annotated[
        str, typer.Option("--embedding-provider", help="Embedding provider name.")
    ] = "",
    db: _DbOption = None,
) -> None:
    """Register a new store. Empty provider references use the tenant defaults."""
    try:
        owner, name = get_owner_and_name_from_id(store_id)
    except KbstoreError as exc:
        console.print(err_kbstore(exc))
        raise typer.Exit(1) from exc

    store = Store(
        owner=owner,
        name=name,
        created_time=get_current_time(),
        display_name=display_name or name,
        storage_provider=storage_provider,
        model_provider=model_provider,
        embedding_provider=embedding_provider,
    )

    repo = open_repo(db, load_cli_config())
    try:
        repo.add_store(store)
    except sqlite3.IntegrityError:
        console.print(err_store_exists(store_id))
        raise typer.Exit(1)
    finally:
        repo.conn.close()

    console.print(f"[green]✓[/] Store '{store_id}' added.")


@store_app.command("show")
def store_show_cmd(
    store_id: Annotated[str, typer.Argument(help="Store id: <owner>/<name>.")],
    db: _DbOption = None,
) -> None:
    """Show a store's settings and vector count."""
    repo = open_repo(db, load_cli_config())
    try:
        store = repo.get_store(store_id)
        if store is None:
            console.print(err_store_not_found(store_id))
            raise typer.Exit(1)
        vector_count = repo.count_vectors(store.owner, store.name)
    except KbstoreError as exc:
        console.print(err_kbstore(exc))
        raise typer.Exit(1) from exc
    finally:
        repo.conn.close()

    console.print(f"[bold]{store.get_id()}[/]  {store.display_name}")
    console.print(f"  Created:    {store.created_time}")
    console.print(f"  Storage:    {store.storage_provider or 'default'}")
    console.print(f"  Model:      {store.model_provider or 'default'}")
    console.print(f"  Embedding:  {store.embedding_provider or 'default'}")
    console.print(f"  Vectors:    {vector_count}")
    if store.properties_map:
        console.print(f"  Properties: {len(store.properties_map)}")


@store_app.command("files")
def store_files_cmd(
    store_id: Annotated[str, typer.Argument(help="Store id: <owner>/<name>.")],
    save: Annotated[
        bool, typer.Option("--save", help="Also save the listing as the store's file tree.")
    ] = False,
    db: _DbOption = None,
) -> None:
    """List the files in the store's storage provider."""
    config = load_cli_config()
    repo = open_repo(db, config)
    service = StoreService(repo, config)
    try:
        tree = service.sync_file_tree(store_id) if save else service.list_files(store_id)
    except KbstoreError as exc:
        console.print(err_kbstore(exc))
        raise typer.Exit(1) from exc
    finally:
        repo.conn.close()

    leaves = list(_iter_leaves(tree))
    if not leaves:
        console.print("[yellow]No files in storage.[/]")
        raise typer.Exit(0)
    for leaf in leaves:
        console.print(f"  {leaf.key}  [dim]{leaf.size} B[/]")
    console.print(f"[green]✓[/] {len(leaves)} files")


@store_app.command("search")
def store_search_cmd(
    store_id: Annotated[str, typer.Argument(help="Store id: <owner>/<name>.")],
    query: Annotated[str, typer.Argument(help="Text to search for.")],
    limit: Annotated[int, typer.Option("--limit", "-n", min=1, help="Maximum number of sections.")] = 5,
    db: _DbOption = None,
) -> None:
    """Show the indexed sections nearest to a query."""
    config = load_cli_config()
    repo = open_repo(db, config)
    service = StoreService(repo, config)
    try:
        results = service.search(store_id, query, limit=limit)
    except KbstoreError as exc:
        console.print(err_kbstore(exc))
        raise typer.Exit(1) from exc
    finally:
        repo.conn.close()

    if not results:
        console.print(f"[yellow]No indexed sections.[/] Run:  kbstore refresh {store_id}")
        raise typer.Exit(0)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Distance", justify="right")
    table.add_column("File", no_wrap=True)
    table.add_column("#", justify="right")
    table.add_column("Text")
    for vector, distance in results:
        table.add_row(f"{distance:.4f}", escape(vector.file), str(vector.index), escape(_preview(vector.text)))
    console.print(table)


@store_app.command("delete")
def store_delete_cmd(
    store_id: Annotated[str, typer.Argument(help="Store id: <owner>/<name>.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt.")] = False,
    db: _DbOption = None,
) -> None:
    """Delete a store record and its vectors."""
    repo = open_repo(db, load_cli_config())
    try:
        store = repo.get_store(store_id)
        if store is None:
            console.print(f"[yellow]Store not found:[/] '{store_id}', nothing to delete.")
            raise typer.Exit(0)

        if not yes and not typer.confirm(f"Delete store '{store_id}'?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)

        repo.delete_store(store)
    except KbstoreError as exc:
        console.print(err_kbstore(exc))
        raise typer.Exit(1) from exc
    finally:
        repo.conn.close()

    console.print(f"[green]✓[/] Store '{store_id}' deleted.")


def _iter_leaves(node: File):
    for child in node.children:
        if child.is_leaf:
            yield child
        else:
            yield from _iter_leaves(child)


def _preview(text: str, width: int = 80) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= width else flat[: width - 1] + "…"
