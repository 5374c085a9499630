"""kbstore provider CLI commands.

Commands:
  kbstore provider add <owner/name> --category --type    register a provider record
  kbstore provider list [--owner]                         list provider records
"""

from __future__ import annotations

import sqlite3
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from kbstore.cli.common import console, load_cli_config, open_repo
from kbstore.cli.errors import err_kbstore, err_provider_exists
from kbstore.db.models import Provider
from kbstore.errors import KbstoreError
from kbstore.ids import get_current_time, get_owner_and_name_from_id

provider_app = typer.Typer(
    name="provider",
    help="Manage storage, model and embedding provider records.",
    add_completion=False,
)


class Category(str, Enum):
    storage = "Storage"
    model = "Model"
    embedding = "Embedding"


_DbOption = Annotated[
    Path | None,
    typer.Option("--db", help="Path to the kbstore database (default from config)."),
]


@provider_app.command("add")
def provider_add_cmd(
    provider_id: Annotated[str, typer.Argument(help="Provider id: <owner>/<name>.")],
    category: Annotated[Category, typer.Option("--category", "-c", help="Provider category.")],
    provider_type: Annotated[str, typer.Option("--type", "-t", help="Backend type, e.g. OpenAI.")],
    sub_type: Annotated[str, typer.Option("--sub-type", help="Model id for model/embedding providers.")] = "",
    provider_url: Annotated[
        str, typer.Option("--provider-url", help="Endpoint URL, or root directory for local storage.")
    ] = "",
    client_secret: Annotated[
        str, typer.Option("--client-secret", envvar="KBSTORE_PROVIDER_SECRET", help="API key stored on the record.")
    ] = "",
    default: Annotated[bool, typer.Option("--default", help="Mark as the default for its category.")] = False,
    max_batch_size: Annotated[
        int | None, typer.Option("--max-batch-size", min=1, help="Sections per refresh for this backend.")
    ] = None,
    db: _DbOption = None,
) -> None:
    """Register a provider record."""
    try:
        owner, name = get_owner_and_name_from_id(provider_id)
    except KbstoreError as exc:
        console.print(err_kbstore(exc))
        raise typer.Exit(1) from exc

    provider = Provider(
        owner=owner,
        name=name,
        category=category.value,
        type=provider_type,
        sub_type=sub_type,
        created_time=get_current_time(),
        display_name=name,
        client_secret=client_secret,
        provider_url=provider_url,
        is_default=default,
        max_batch_size=max_batch_size,
    )

    repo = open_repo(db, load_cli_config())
    try:
        repo.add_provider(provider)
    except sqlite3.IntegrityError:
        console.print(err_provider_exists(provider_id))
        raise typer.Exit(1)
    finally:
        repo.conn.close()

    console.print(f"[green]✓[/] {category.value} provider '{provider_id}' added.")


@provider_app.command("list")
def provider_list_cmd(
    owner: Annotated[
        str | None,
        typer.Option("--owner", "-o", help="Owner to list (default: the admin owner)."),
    ] = None,
    db: _DbOption = None,
) -> None:
    """List provider records of one owner, newest first."""
    config = load_cli_config()
    repo = open_repo(db, config)
    try:
        providers = repo.get_providers(owner or config.tenancy.admin_owner)
    finally:
        repo.conn.close()

    if not providers:
        console.print("[yellow]No providers found.[/]")
        raise typer.Exit(0)

    table = Table(title="Providers", show_header=True, header_style="bold")
    table.add_column("Id", style="bold", no_wrap=True)
    table.add_column("Category")
    table.add_column("Type")
    table.add_column("Sub type")
    table.add_column("Default")
    table.add_column("Batch")
    for p in providers:
        table.add_row(
            p.get_id(),
            p.category,
            p.type,
            p.sub_type,
            "[green]✓[/]" if p.is_default else "",
            str(p.max_batch_size) if p.max_batch_size else "",
        )
    console.print(table)
