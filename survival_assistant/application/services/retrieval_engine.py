"""Retrieval Engine: document search plus slang phrase lookup.

Stateless apart from a per-document phrase-table cache; everything it knows
comes from the Document Store.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Sequence

from survival_assistant.application.services.document_store import DocumentStore
from survival_assistant.domain.models import Document, Intent, PhraseEntry, SearchMatch
from survival_assistant.domain.services.phrase_table import PhraseTable, build_phrase_entries

MIN_TERM_LENGTH = 4
STOP_WORDS = frozenset(
    {
        "what", "where", "when", "which", "who", "whom", "whose", "why", "how",
        "does", "doing", "done", "have", "having", "this", "that", "these", "those",
        "there", "their", "them", "they", "with", "from", "into", "about", "should",
        "would", "could", "will", "your", "yours", "some", "any", "good", "best",
        "tell", "know", "please", "here", "near", "nearby", "like", "want", "need",
        "find", "bangalore", "bengaluru",
    }
)
SLANG_DOMAIN = "slang"


def query_terms(query: str) -> list[str]:
    """Distinct lower-cased terms worth searching on their own, in query order."""
    terms: list[str] = []
    for t in re.findall(r"[a-z0-9']+", query.lower()):
        t = t.strip("'")
        if len(t) >= MIN_TERM_LENGTH and t not in STOP_WORDS and t not in terms:
            terms.append(t)
    return terms


def matching_sections(
    query: str, documents: Sequence[Document]
) -> list[tuple[Document, dict[str, str]]]:
    """Sections whose heading or text contains the query or one of its terms.

    Documents without a matching section are left out; order follows
    ``documents`` and then section order.
    """
    needles = [query.strip().lower(), *query_terms(query)]
    needles = [n for n in needles if n]
    gathered: list[tuple[Document, dict[str, str]]] = []
    for doc in documents:
        hits = {
            name: text
            for name, text in doc.sections.items()
            if any(n in f"{name.replace('-', ' ')}\n{text}".lower() for n in needles)
        }
        if hits:
            gathered.append((doc, hits))
    return gathered


class RetrievalEngine:
    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self._tables: dict[str, tuple[Document, PhraseTable]] = {}
        self._lock = threading.Lock()

    def search(self, query: str, active_ids: Sequence[str]) -> list[SearchMatch]:
        return self.store.search(query, active_ids)

    def _domain_of(self, document_id: str) -> str | None:
        doc = self.store.loaded(document_id)
        return doc.domain if doc is not None else None

    def best_match(
        self, query: str, active_ids: Sequence[str], intent: Intent
    ) -> SearchMatch | None:
        """
        First match from a document whose domain equals ``intent``.

        For ``Intent.OTHER`` any domain qualifies. When the whole query is not
        found verbatim, each significant term is searched in turn.
        """

        def wanted(m: SearchMatch) -> bool:
            return intent is Intent.OTHER or self._domain_of(m.document_id) == intent.value

        for m in self.search(query, active_ids):
            if wanted(m):
                return m
        for term in query_terms(query):
            for m in self.search(term, active_ids):
                if wanted(m):
                    return m
        return None

    # ===== Phrase table =====

    def phrase_document(self, active_ids: Sequence[str]) -> Document | None:
        """The first active, loaded, non-empty slang document."""
        for document_id in active_ids:
            doc = self.store.loaded(document_id)
            if doc is not None and doc.domain == SLANG_DOMAIN and not doc.is_empty:
                return doc
        return None

    def phrase_table(self, doc: Document) -> PhraseTable:
        # Keyed by id but validated by identity, so a refreshed document rebuilds.
        with self._lock:
            cached = self._tables.get(doc.id)
            if cached is not None and cached[0] is doc:
                return cached[1]
        table = PhraseTable(build_phrase_entries(doc.raw_text))
        with self._lock:
            self._tables[doc.id] = (doc, table)
        return table

    def explain_phrase(self, query: str, active_ids: Sequence[str]) -> PhraseEntry | None:
        doc = self.phrase_document(active_ids)
        if doc is None:
            return None
        return self.phrase_table(doc).lookup(query)

    def detect_phrases(self, text: str, active_ids: Sequence[str]) -> list[str]:
        """Known phrases occurring as whole words in ``text``, longest first."""
        doc = self.phrase_document(active_ids)
        if doc is None:
            return []
        return self.phrase_table(doc).detect(text)
