"""kbstore indexing pipeline: text splitting and vector indexing."""

from kbstore.ingest.indexer import SUPPORTED_EXTENSIONS, VectorIndexer, VectorPipeline, is_supported
from kbstore.ingest.splitter import section_tokens_for, split_text

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "VectorIndexer",
    "VectorPipeline",
    "is_supported",
    "section_tokens_for",
    "split_text",
]
