# survival_assistant/application/use_cases/manage_documents.py
from __future__ import annotations

import threading

from survival_assistant.application.ports.session_store_port import SessionStorePort
from survival_assistant.application.services.document_store import DocumentStore
from survival_assistant.domain.errors import NotFoundError
from survival_assistant.domain.models import DocumentInfo, SessionPreferences
from survival_assistant.domain.types import Result


class ListDocuments:
    """Catalogue read; calling it twice without a toggle returns equal lists."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def execute(self) -> list[DocumentInfo]:
        return self.store.catalogue()


class ToggleDocument:
    """
    Flip a document on or off.

    Without a session id the shared store cache is toggled. With a session id
    only that session's active list changes: the new state is derived from the
    list itself, so other sessions loading or unloading the document never
    affect the result. A session without a stored record starts from the
    documents currently loaded, the same set its queries would use.
    """

    def __init__(self, store: DocumentStore, sessions: SessionStorePort | None = None) -> None:
        self.store = store
        self.sessions = sessions
        self._lock = threading.Lock()

    def execute(
        self, document_id: str, session_id: str | None = None
    ) -> Result[DocumentInfo, NotFoundError]:
        if session_id is None or self.sessions is None:
            return self.store.toggle(document_id)

        entry = next((d for d in self.store.catalogue() if d.id == document_id), None)
        if entry is None:
            return Result.failure(NotFoundError(f"unknown document '{document_id}'"))

        with self._lock:
            prefs = self.sessions.get(session_id)
            if prefs is None:
                prefs = SessionPreferences(session_id=session_id)
                current = tuple(d.id for d in self.store.catalogue() if d.is_loaded)
            else:
                current = prefs.active_document_ids

            active = [i for i in current if i != document_id]
            is_active = document_id not in current
            if is_active:
                # make sure the session's queries find it cached
                self.store.load(document_id)
                active.append(document_id)

            self.sessions.save(
                SessionPreferences(
                    session_id=session_id,
                    persona=prefs.persona,
                    active_document_ids=tuple(active),
                    context_enabled=prefs.context_enabled,
                )
            )

        return Result.success(
            DocumentInfo(id=entry.id, name=entry.name, domain=entry.domain, is_loaded=is_active)
        )
