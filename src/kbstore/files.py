"""In-memory file tree built from a storage listing.

The tree is rebuilt on every listing; it is only persisted as the
``file_tree`` blob of a store.
"""

from __future__ import annotations

from kbstore.db.models import File
from kbstore.providers.storage import StorageObject

ROOT_KEY = "/"


def build_file_tree(objects: list[StorageObject], title: str = "") -> File:
    """Build a directory tree from a flat list of ``/``-separated object keys.

    Directory nodes use the path prefix as key (``docs``, ``docs/guides``).
    Children are ordered directories first, then by title.

    Args:
        objects: Storage listing (any order).
        title:   Title of the root node, usually the store name.

    Returns:
        Root ``File`` with key ``"/"``.
    """
    root = File(key=ROOT_KEY, title=title, is_leaf=False)
    dirs: dict[str, File] = {"": root}

    for obj in objects:
        parts = [p for p in obj.key.split("/") if p]
        if not parts:
            continue

        parent = root
        for depth in range(1, len(parts)):
            dir_key = "/".join(parts[:depth])
            node = dirs.get(dir_key)
            if node is None:
                node = File(key=dir_key, title=parts[depth - 1], is_leaf=False)
                dirs[dir_key] = node
                parent.children.append(node)
            parent = node

        parent.children.append(
            File(
                key="/".join(parts),
                title=parts[-1],
                size=obj.size,
                created_time=obj.last_modified,
                is_leaf=True,
                url=obj.url,
            )
        )

    _sort(root)
    return root


def find_file(root: File, key: str) -> File | None:
    """Return the node with *key* under *root*, or None if absent."""
    if key in ("", ROOT_KEY):
        return root

    node = root
    parts = key.split("/")
    for depth in range(1, len(parts) + 1):
        child = node.children_map().get("/".join(parts[:depth]))
        if child is None:
            return None
        node = child
    return node


def _sort(node: File) -> None:
    node.children.sort(key=lambda f: (f.is_leaf, f.title))
    for child in node.children:
        if not child.is_leaf:
            _sort(child)
