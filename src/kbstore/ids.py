"""Composite ``owner/name`` identifiers and timestamps."""

from __future__ import annotations

from datetime import datetime

from kbstore.errors import InvalidIdError

_SEPARATOR = "/"


def get_id_from_owner_and_name(owner: str, name: str) -> str:
    """Format *owner* and *name* as ``"owner/name"``.

    Examples:
        ("acme", "kb1") -> "acme/kb1"
    """
    return f"{owner}{_SEPARATOR}{name}"


def get_owner_and_name_from_id(id: str) -> tuple[str, str]:
    """Split ``"owner/name"`` into ``(owner, name)``.

    Raises:
        InvalidIdError: If *id* does not contain exactly one separator.
    """
    tokens = id.split(_SEPARATOR)
    if len(tokens) != 2:
        raise InvalidIdError(
            f"Invalid id '{id}': expected '<owner>/<name>', got {len(tokens)} token(s)."
        )
    return tokens[0], tokens[1]


def get_current_time() -> str:
    """Return the current local time as an RFC 3339 string (seconds precision)."""
    return datetime.now().astimezone().isoformat(timespec="seconds")
