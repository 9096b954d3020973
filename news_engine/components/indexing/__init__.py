"""Indexing component - search index synchronization for articles."""

from news_engine.components.indexing.component import IndexSynchronizer, translation_index_id

__all__ = [
    "IndexSynchronizer",
    "translation_index_id",
]
