"""
Versioned-document store port.

The storage engine that keeps article pages, their per-language versions
and drafts. The engine only orchestrates calls through this interface.
"""

from __future__ import annotations

from typing import Protocol

from news_engine.domain.entities import DraftPage, Note, PageVersion


class DocumentStorePort(Protocol):
    """Versioned document storage."""

    def get_root(self, space_id: str) -> Note | None:
        """Get the root container page of a space."""
        ...

    def create_root(self, space_id: str, name: str) -> Note:
        """Create the root container page of a space."""
        ...

    def create_note(self, note: Note) -> Note:
        ...

    def get_note(self, note_id: str) -> Note | None:
        ...

    def update_note(self, note: Note) -> Note:
        ...

    def delete_note(self, note_id: str) -> None:
        """Delete a page together with all its versions."""
        ...

    def create_version(self, version: PageVersion) -> PageVersion:
        ...

    def get_version(self, note_id: str, lang: str | None) -> PageVersion | None:
        """Get the latest version of a page for a language (None = canonical)."""
        ...

    def delete_versions(self, note_id: str, lang: str) -> int:
        """Delete every version of a page for a language. Returns count deleted."""
        ...

    def list_translation_languages(self, note_id: str) -> list[str]:
        """Languages (other than canonical) a page has versions for."""
        ...

    def create_draft(self, draft: DraftPage) -> DraftPage:
        ...

    def update_draft(self, draft: DraftPage) -> DraftPage:
        ...

    def get_draft(self, draft_id: str) -> DraftPage | None:
        ...

    def get_latest_draft(
        self, user_id: str, target_page_id: str, lang: str | None
    ) -> DraftPage | None:
        """Get the draft a user is editing for an existing page and language."""
        ...

    def list_drafts_of_page(self, target_page_id: str) -> list[DraftPage]:
        ...

    def list_new_page_drafts(self, author: str, space_ids: list[str]) -> list[DraftPage]:
        """Drafts of not yet created pages, by author."""
        ...

    def delete_draft(self, draft_id: str) -> None:
        ...
