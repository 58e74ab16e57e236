"""Document Store: loads, caches and searches the named knowledge documents.

Why: One owner for document lifecycle. Reads go through DocumentLoaderPort,
     so the store itself has no filesystem code and tests can feed text.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from types import MappingProxyType

from survival_assistant.application.ports.clock_port import ClockPort
from survival_assistant.application.ports.document_loader_port import DocumentLoaderPort
from survival_assistant.domain.errors import DomainError, NotFoundError
from survival_assistant.domain.models import Document, DocumentInfo, SearchMatch
from survival_assistant.domain.services.parsing import parse_sections
from survival_assistant.domain.types import Result

logger = logging.getLogger(__name__)

EXCERPT_CHARS = 500


@dataclass(frozen=True)
class CatalogueEntry:
    id: str
    name: str  # file name inside the context directory
    domain: str


DEFAULT_CATALOGUE: tuple[CatalogueEntry, ...] = (
    CatalogueEntry("city", "city.md", "city"),
    CatalogueEntry("slang", "slang.md", "slang"),
    CatalogueEntry("food", "food.md", "food"),
    CatalogueEntry("traffic", "traffic.md", "traffic"),
    CatalogueEntry("etiquette", "etiquette.md", "etiquette"),
)


class DocumentStore:
    """
    Read-mostly cache of Documents keyed by catalogue id.

    - A Document is immutable; ``refresh`` builds a new one and swaps it in
      under the lock, so readers see either the old or the new object.
    - File reads happen outside the lock.
    - A missing or unreadable file loads as an empty Document (logged).
    """

    def __init__(
        self,
        loader: DocumentLoaderPort,
        clock: ClockPort,
        context_dir: str,
        catalogue: Sequence[CatalogueEntry] = DEFAULT_CATALOGUE,
    ) -> None:
        self.loader = loader
        self.clock = clock
        self.context_dir = context_dir
        self._catalogue = {e.id: e for e in catalogue}
        self._docs: dict[str, Document] = {}
        self._lock = threading.Lock()
        self._toggle_lock = threading.Lock()

    # ===== Catalogue =====

    def has(self, document_id: str) -> bool:
        return document_id in self._catalogue

    def catalogue(self) -> list[DocumentInfo]:
        with self._lock:
            loaded = set(self._docs)
        return [
            DocumentInfo(id=e.id, name=e.name, domain=e.domain, is_loaded=e.id in loaded)
            for e in self._catalogue.values()
        ]

    # ===== Lifecycle =====

    def _read(self, entry: CatalogueEntry) -> Document:
        path = os.path.join(self.context_dir, entry.name)
        try:
            text = self.loader.load(path).text
        except DomainError as ex:
            logger.warning("Document %s could not be read from %s: %s", entry.id, path, ex)
            text = ""
        return Document(
            id=entry.id,
            domain=entry.domain,
            raw_text=text,
            sections=MappingProxyType(parse_sections(text)),
            loaded_at=self.clock.now(),
        )

    def load(self, document_id: str) -> Result[Document, NotFoundError]:
        """Return the cached Document, reading it on first use."""
        cached = self.loaded(document_id)
        if cached is not None:
            return Result.success(cached)
        return self.refresh(document_id)

    def refresh(self, document_id: str) -> Result[Document, NotFoundError]:
        """Re-read the backing file and atomically replace the cached Document."""
        entry = self._catalogue.get(document_id)
        if entry is None:
            return Result.failure(NotFoundError(f"unknown document '{document_id}'"))
        doc = self._read(entry)
        with self._lock:
            self._docs[document_id] = doc
        logger.info(
            "Loaded document %s (%d sections%s)",
            document_id,
            len(doc.sections),
            ", empty" if doc.is_empty else "",
        )
        return Result.success(doc)

    def unload(self, document_id: str) -> None:
        with self._lock:
            self._docs.pop(document_id, None)

    def loaded(self, document_id: str) -> Document | None:
        with self._lock:
            return self._docs.get(document_id)

    def toggle(self, document_id: str) -> Result[DocumentInfo, NotFoundError]:
        """Unload when cached, otherwise read and cache. Toggles are serialized."""
        entry = self._catalogue.get(document_id)
        if entry is None:
            return Result.failure(NotFoundError(f"unknown document '{document_id}'"))
        with self._toggle_lock:
            with self._lock:
                is_loaded = self._docs.pop(document_id, None) is None
            if is_loaded:
                self.refresh(document_id)
        return Result.success(
            DocumentInfo(id=entry.id, name=entry.name, domain=entry.domain, is_loaded=is_loaded)
        )

    def documents(self, ids: Sequence[str]) -> tuple[Document, ...]:
        """Known documents for ``ids`` in order, loaded on demand; unknown ids are skipped."""
        docs: list[Document] = []
        seen: set[str] = set()
        for document_id in ids:
            if document_id in seen:
                continue
            seen.add(document_id)
            res = self.load(document_id)
            if res.ok and res.value is not None:
                docs.append(res.value)
            else:
                logger.debug("Skipping unknown document %s", document_id)
        return tuple(docs)

    def load_all(self) -> None:
        for document_id in self._catalogue:
            self.refresh(document_id)

    # ===== Retrieval =====

    def get_section(self, document_id: str, section_name: str) -> str | None:
        """Section text, or None when the document or section is missing."""
        res = self.load(document_id)
        if not res.ok:
            return None
        assert res.value is not None
        return res.value.sections.get(section_name)

    def search(self, query: str, active_ids: Sequence[str]) -> list[SearchMatch]:
        """Case-insensitive substring search over the active, loaded documents.

        Order: active-id order, then section order. Each document is read once
        from the cache so a concurrent refresh cannot mix versions.
        """
        needle = query.strip().lower()
        if not needle:
            return []
        matches: list[SearchMatch] = []
        seen: set[str] = set()
        for document_id in active_ids:
            if document_id in seen:
                continue
            seen.add(document_id)
            doc = self.loaded(document_id)
            if doc is None:
                continue
            for name, text in doc.sections.items():
                if needle in text.lower():
                    excerpt = text[:EXCERPT_CHARS]
                    matches.append(SearchMatch(doc.id, name, excerpt))
        return matches
