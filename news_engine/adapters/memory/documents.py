"""In-memory versioned-document store for development and tests."""

from __future__ import annotations

import threading

from news_engine.domain.entities import DraftPage, Note, PageVersion, utcnow
from news_engine.domain.errors import NotFound


class InMemoryDocumentStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._notes: dict[str, Note] = {}
        self._roots: dict[str, str] = {}
        self._versions: dict[str, list[PageVersion]] = {}
        self._drafts: dict[str, DraftPage] = {}

    # --- Pages ---

    def get_root(self, space_id: str) -> Note | None:
        with self._lock:
            root_id = self._roots.get(space_id)
            return self._notes.get(root_id) if root_id else None

    def create_root(self, space_id: str, name: str) -> Note:
        with self._lock:
            existing = self.get_root(space_id)
            if existing:
                return existing
            root = Note(space_id=space_id, name=name, title=name)
            self._notes[root.id] = root
            self._roots[space_id] = root.id
            return root

    def create_note(self, note: Note) -> Note:
        with self._lock:
            self._notes[note.id] = note
            return note

    def get_note(self, note_id: str) -> Note | None:
        with self._lock:
            return self._notes.get(note_id)

    def update_note(self, note: Note) -> Note:
        with self._lock:
            if note.id not in self._notes:
                raise NotFound(f"Page {note.id} not found", note.id)
            updated = note.model_copy(update={"updated_at": utcnow()})
            self._notes[note.id] = updated
            return updated

    def delete_note(self, note_id: str) -> None:
        with self._lock:
            self._notes.pop(note_id, None)
            self._versions.pop(note_id, None)

    # --- Versions ---

    def create_version(self, version: PageVersion) -> PageVersion:
        with self._lock:
            if version.note_id not in self._notes:
                raise NotFound(f"Page {version.note_id} not found", version.note_id)
            self._versions.setdefault(version.note_id, []).append(version)
            return version

    def get_version(self, note_id: str, lang: str | None) -> PageVersion | None:
        with self._lock:
            matching = [v for v in self._versions.get(note_id, []) if v.lang == lang]
            return matching[-1] if matching else None

    def delete_versions(self, note_id: str, lang: str) -> int:
        with self._lock:
            versions = self._versions.get(note_id, [])
            kept = [v for v in versions if v.lang != lang]
            self._versions[note_id] = kept
            return len(versions) - len(kept)

    def list_translation_languages(self, note_id: str) -> list[str]:
        with self._lock:
            langs: list[str] = []
            for version in self._versions.get(note_id, []):
                if version.lang and version.lang not in langs:
                    langs.append(version.lang)
            return langs

    # --- Drafts ---

    def create_draft(self, draft: DraftPage) -> DraftPage:
        with self._lock:
            self._drafts[draft.id] = draft
            return draft

    def update_draft(self, draft: DraftPage) -> DraftPage:
        with self._lock:
            if draft.id not in self._drafts:
                raise NotFound(f"Draft {draft.id} not found", draft.id)
            updated = draft.model_copy(update={"updated_at": utcnow()})
            self._drafts[draft.id] = updated
            return updated

    def get_draft(self, draft_id: str) -> DraftPage | None:
        with self._lock:
            return self._drafts.get(draft_id)

    def get_latest_draft(
        self, user_id: str, target_page_id: str, lang: str | None
    ) -> DraftPage | None:
        with self._lock:
            for draft in self._drafts.values():
                if (
                    draft.author == user_id
                    and draft.target_page_id == target_page_id
                    and draft.lang == lang
                ):
                    return draft
            return None

    def list_drafts_of_page(self, target_page_id: str) -> list[DraftPage]:
        with self._lock:
            return [d for d in self._drafts.values() if d.target_page_id == target_page_id]

    def list_new_page_drafts(self, author: str, space_ids: list[str]) -> list[DraftPage]:
        with self._lock:
            drafts = [
                d
                for d in self._drafts.values()
                if d.author == author and d.target_page_id is None and d.space_id in space_ids
            ]
            return sorted(drafts, key=lambda d: d.updated_at, reverse=True)

    def delete_draft(self, draft_id: str) -> None:
        with self._lock:
            self._drafts.pop(draft_id, None)
