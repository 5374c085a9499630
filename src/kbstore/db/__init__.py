"""kbstore database layer."""

from kbstore.db.connection import Database
from kbstore.db.migrations import LATEST_VERSION, MIGRATIONS, current_version, run_migrations
from kbstore.db.models import File, Properties, Provider, Store, Vector
from kbstore.db.repository import Repository
from kbstore.db.vectors import ensure_vec_table, provider_to_slug, vec_table_exists, vec_table_name

__all__ = [
    "Database",
    "File",
    "LATEST_VERSION",
    "MIGRATIONS",
    "Properties",
    "Provider",
    "Repository",
    "Store",
    "Vector",
    "current_version",
    "ensure_vec_table",
    "provider_to_slug",
    "run_migrations",
    "vec_table_exists",
    "vec_table_name",
]
