"""kbstore rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it
"""

from __future__ import annotations

from kbstore.errors import (
    InvalidIdError,
    KbstoreError,
    ProviderNotFoundError,
    StorageClientError,
    StoreNotFoundError,
)


def err_no_db(db_path: str = ".kbstore.db") -> str:
    """No database at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  kbstore init"
    )


def err_store_not_found(store_id: str) -> str:
    return (
        f"[red]Error:[/] Store '{store_id}' not found.\n"
        "  Run:  kbstore store list  to see existing stores."
    )


def err_store_exists(store_id: str) -> str:
    return (
        f"[red]Error:[/] Store '{store_id}' already exists.\n"
        f"  Pick another name or remove it first:  kbstore store delete {store_id}"
    )


def err_provider_exists(provider_id: str) -> str:
    return (
        f"[red]Error:[/] Provider '{provider_id}' already exists.\n"
        "  Pick another name."
    )


def err_provider_not_found(exc: ProviderNotFoundError) -> str:
    if exc.provider_id:
        return (
            f"[red]Error:[/] {exc.category} provider '{exc.provider_id}' not found.\n"
            f"  Register it:  kbstore provider add {exc.provider_id} "
            f"--category {exc.category} --type <type>"
        )
    return (
        f"[red]Error:[/] No default {exc.category.lower()} provider is configured.\n"
        f"  Register one:  kbstore provider add admin/<name> "
        f"--category {exc.category} --type <type> --default"
    )


def err_storage(exc: StorageClientError) -> str:
    return (
        f"[red]Error:[/] Storage unavailable: {exc}\n"
        "  Check the store's storage provider or the storage.root setting in kbstore.yaml."
    )


def err_kbstore(exc: KbstoreError) -> str:
    """Map any kbstore error to its actionable message."""
    if isinstance(exc, InvalidIdError):
        return f"[red]Error:[/] {exc}\n  Use the form  <owner>/<name>,  e.g.  acme/kb1"
    if isinstance(exc, StoreNotFoundError):
        return err_store_not_found(exc.store_id)
    if isinstance(exc, ProviderNotFoundError):
        return err_provider_not_found(exc)
    if isinstance(exc, StorageClientError):
        return err_storage(exc)
    return f"[red]Error:[/] {exc}"
