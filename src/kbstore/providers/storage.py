"""Storage clients: where a store's raw files live."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from kbstore.errors import StorageClientError

if TYPE_CHECKING:
    from kbstore.db.models import Provider

LOCAL_FILE_SYSTEM = "Local File System"


@dataclass
class StorageObject:
    """One object reported by a storage listing."""

    key: str
    size: int
    last_modified: str
    url: str


@runtime_checkable
class StorageClient(Protocol):
    """Object listing and retrieval for a store's backing files."""

    def list_objects(self, prefix: str) -> list[StorageObject]: ...

    def get_object(self, key: str) -> bytes: ...


class LocalFileStorage:
    """Filesystem-backed storage. Keys are POSIX paths relative to *root*.

    The root is only checked when the client is used, so a client for a
    location that does not exist yet can still be built.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()

    def list_objects(self, prefix: str = "") -> list[StorageObject]:
        """Return every regular file under root whose key starts with *prefix*, sorted by key.

        Raises:
            StorageClientError: The root is not a directory.
        """
        self._check_root()
        objects: list[StorageObject] = []
        for path in sorted(self.root.rglob("*")):
            if not path.is_file():
                continue
            key = path.relative_to(self.root).as_posix()
            if not key.startswith(prefix):
                continue
            st = path.stat()
            objects.append(
                StorageObject(
                    key=key,
                    size=st.st_size,
                    last_modified=datetime.fromtimestamp(st.st_mtime)
                    .astimezone()
                    .isoformat(timespec="seconds"),
                    url=path.as_uri(),
                )
            )
        return objects

    def get_object(self, key: str) -> bytes:
        self._check_root()
        return self._path(key).read_bytes()

    def _check_root(self) -> None:
        if not self.root.is_dir():
            raise StorageClientError(f"Storage location '{self.root}' is not a directory.")

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root):
            raise StorageClientError(f"Key '{key}' escapes storage root '{self.root}'.")
        return path


def storage_client_for(provider: Provider, root: Path | str = ".") -> StorageClient:
    """Build the storage client described by a registered provider record.

    A relative ``provider_url`` is taken relative to *root* (config
    ``storage.root``), the same as a raw storage reference.

    Raises:
        StorageClientError: Unsupported provider type or empty location.
    """
    if provider.type != LOCAL_FILE_SYSTEM:
        raise StorageClientError(
            f"Storage provider '{provider.get_id()}' has unsupported type '{provider.type}'."
        )
    return _local_storage(provider.provider_url, Path(root))


def new_storage_client(name_or_config: str, root: Path | str = ".") -> StorageClient:
    """Build a storage client straight from a raw storage reference.

    Used for storage references that are not registered provider records.
    The reference is a directory, absolute or relative to *root*. It need
    not exist yet: the client reports a missing directory when it is used.

    Raises:
        StorageClientError: If the reference is empty.
    """
    return _local_storage(name_or_config, Path(root))


def _local_storage(location: str, root: Path) -> LocalFileStorage:
    if not location:
        raise StorageClientError("Storage location is empty.")
    path = Path(location)
    if not path.is_absolute():
        path = root / path
    return LocalFileStorage(path)
