"""
Index synchronizer - fires reindex/unindex requests for articles.

Requests are keyed by article id and by "<id>-<lang>" for translations.
The lifecycle transition is already committed when these run, so a search
index failure is logged and never propagated.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from news_engine.core.ports.search import SearchIndexPort
from news_engine.rules.models import IndexingRules

logger = logging.getLogger(__name__)


def translation_index_id(article_id: str, lang: str) -> str:
    return f"{article_id}-{lang}"


class IndexSynchronizer:
    """Best-effort search index trigger."""

    def __init__(self, search: SearchIndexPort, rules: IndexingRules) -> None:
        self._search = search
        self._rules = rules

    def _reindex(self, index_type: str, object_id: str) -> bool:
        try:
            self._search.reindex(index_type, object_id)
            return True
        except Exception:
            logger.warning("Reindex of %s/%s failed", index_type, object_id, exc_info=True)
            return False

    def _unindex(self, index_type: str, object_id: str) -> bool:
        try:
            self._search.unindex(index_type, object_id)
            return True
        except Exception:
            logger.warning("Unindex of %s/%s failed", index_type, object_id, exc_info=True)
            return False

    def index_article(self, article_id: str) -> bool:
        return self._reindex(self._rules.article_type, article_id)

    def index_translation(self, article_id: str, lang: str) -> bool:
        return self._reindex(self._rules.translation_type, translation_index_id(article_id, lang))

    def unindex_translation(self, article_id: str, lang: str) -> bool:
        return self._unindex(self._rules.translation_type, translation_index_id(article_id, lang))

    def unindex_article(self, article_id: str, langs: Iterable[str] = ()) -> bool:
        """Unindex the article and each of its translations. True if every call succeeded."""
        ok = self._unindex(self._rules.article_type, article_id)
        for lang in langs:
            ok = self.unindex_translation(article_id, lang) and ok
        return ok
