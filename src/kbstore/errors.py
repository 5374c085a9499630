"""Domain exceptions for kbstore.

Persistence failures are plain ``sqlite3.Error`` and are never wrapped here.
Absence on lookup is ``None``, not an exception; the resolver and the
service layer turn absence into one of these when a record is required.
"""

from __future__ import annotations


class KbstoreError(Exception):
    """Base class for every error raised by kbstore itself."""


class InvalidIdError(KbstoreError, ValueError):
    """Raised when a composite ``owner/name`` id is malformed."""


class StoreNotFoundError(KbstoreError):
    """Raised when a store required by an operation does not exist."""

    def __init__(self, store_id: str) -> None:
        super().__init__(f"Store '{store_id}' not found.")
        self.store_id = store_id


class ProviderError(KbstoreError):
    """Raised when a provider record cannot produce a working client."""


class ProviderNotFoundError(ProviderError):
    """Raised when a named or default provider record does not exist."""

    def __init__(self, category: str, provider_id: str | None = None) -> None:
        if provider_id:
            msg = f"{category} provider '{provider_id}' not found."
        else:
            msg = f"No default {category.lower()} provider is configured."
        super().__init__(msg)
        self.category = category
        self.provider_id = provider_id


class StorageClientError(ProviderError):
    """Raised when a storage client cannot be constructed or its location is unusable."""
