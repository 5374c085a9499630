"""kbstore CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from kbstore.cli.init import init_cmd
from kbstore.cli.providers import provider_app
from kbstore.cli.refresh import refresh_cmd
from kbstore.cli.stores import store_app


def _version() -> str:
    try:
        return importlib.metadata.version("kbstore")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"kbstore {_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="kbstore",
    help=(
        "kbstore: multi-tenant knowledge-base stores.\n\n"
        "  kbstore store     Manage stores and list their files.\n"
        "  kbstore provider  Register storage / model / embedding providers.\n"
        "  kbstore refresh   Rebuild a store's vector index."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """kbstore: multi-tenant knowledge-base stores."""


app.command("init")(init_cmd)
app.command("refresh")(refresh_cmd)
app.add_typer(store_app, name="store")
app.add_typer(provider_app, name="provider")


@app.command("version")
def version_cmd() -> None:
    """Show the installed kbstore version."""
    typer.echo(f"kbstore {_version()}")


if __name__ == "__main__":
    app()
