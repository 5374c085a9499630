"""Domain models for the kbstore database layer."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from kbstore.ids import get_id_from_owner_and_name

if TYPE_CHECKING:
    from kbstore.providers.embedding import EmbeddingClient
    from kbstore.providers.storage import StorageClient

# Provider.category values
CATEGORY_STORAGE = "Storage"
CATEGORY_MODEL = "Model"
CATEGORY_EMBEDDING = "Embedding"


@dataclass
class File:
    """A node in a store's document tree (leaf file or directory)."""

    key: str
    title: str = ""
    size: int = 0
    created_time: str = ""
    is_leaf: bool = True
    url: str = ""
    children: list[File] = field(default_factory=list)

    def children_map(self) -> dict[str, File]:
        """Return a key -> child mapping, rebuilt from ``children`` on every call."""
        return {child.key: child for child in self.children}

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "title": self.title,
            "size": self.size,
            "createdTime": self.created_time,
            "isLeaf": self.is_leaf,
            "url": self.url,
            "children": [c.to_dict() for c in self.children],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> File:
        return cls(
            key=data["key"],
            title=data.get("title", ""),
            size=int(data.get("size", 0)),
            created_time=data.get("createdTime", ""),
            is_leaf=bool(data.get("isLeaf", True)),
            url=data.get("url", ""),
            children=[cls.from_dict(c) for c in data.get("children") or []],
        )


@dataclass
class Properties:
    """Metadata for one ingested unit (e.g. a subject/date slice)."""

    collected_time: str = ""
    subject: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"collectedTime": self.collected_time, "subject": self.subject}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Properties:
        return cls(
            collected_time=data.get("collectedTime", ""),
            subject=data.get("subject", ""),
        )


@dataclass
class Store:
    """Tenant-scoped configuration root, keyed by (owner, name).

    An empty provider reference means "use the tenant default".
    """

    owner: str
    name: str
    created_time: str = ""
    display_name: str = ""
    storage_provider: str = ""
    model_provider: str = ""
    embedding_provider: str = ""
    frequency: int = 0
    limit_minutes: int = 0
    welcome: str = ""
    prompt: str = ""
    file_tree: File | None = None
    properties_map: dict[str, Properties] = field(default_factory=dict)

    def get_id(self) -> str:
        return get_id_from_owner_and_name(self.owner, self.name)

    @property
    def file_tree_json(self) -> str | None:
        return json.dumps(self.file_tree.to_dict()) if self.file_tree else None

    @property
    def properties_map_json(self) -> str:
        return json.dumps({k: v.to_dict() for k, v in self.properties_map.items()})


@dataclass
class Provider:
    """An owner-scoped record describing how to reach a storage, model or
    embedding backend.

    Attributes:
        category: One of ``Storage``, ``Model``, ``Embedding``.
        type: Backend family, e.g. ``OpenAI`` or ``Local File System``.
        sub_type: Backend-specific model id (``text-embedding-3-small``).
        provider_url: Endpoint URL, or root directory for local storage.
        max_batch_size: Largest refresh batch the backend tolerates; ``None``
            falls back to the configured per-type limits.
    """

    owner: str
    name: str
    category: str
    type: str
    sub_type: str = ""
    created_time: str = ""
    display_name: str = ""
    client_id: str = ""
    client_secret: str = ""
    provider_url: str = ""
    is_default: bool = False
    max_batch_size: int | None = None

    def get_id(self) -> str:
        return get_id_from_owner_and_name(self.owner, self.name)

    def get_storage_client(self, root: str = ".") -> StorageClient:
        from kbstore.providers.storage import storage_client_for

        return storage_client_for(self, root)

    def get_embedding_client(self, num_retries: int = 3) -> EmbeddingClient:
        from kbstore.providers.embedding import embedding_client_for

        return embedding_client_for(self, num_retries=num_retries)


@dataclass
class Vector:
    """One embedded text section of a file in a store.

    Vectors are scoped by (owner, store) like the store itself, and by the
    embedding provider that produced them.
    """

    owner: str
    store: str
    provider: str
    file: str
    index: int
    text: str
    size: int = 0
    dimension: int = 0
    created_time: str | None = None
    id: int | None = None  # set after insert; shared with the vec table rowid
