# Pure domain service: builds and queries the slang/phrase vocabulary.
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from survival_assistant.domain.models import PhraseEntry
from survival_assistant.domain.services.parsing import parse_section_table

KNOWN_TONES = (
    "friendly",
    "rude",
    "sarcastic",
    "neutral",
    "affectionate",
    "respectful",
    "casual",
    "enthusiastic",
    "admiring",
    "direct",
    "caring",
    "positive",
    "polite",
)
_TONE_ALIASES = {"warm": "affectionate", "requesting": "polite"}

# Phrase candidates inside a question: quoted text, or text after a cue.
_QUOTED = re.compile(r"[\"“']([^\"”']{2,})[\"”']")
_CUE = re.compile(
    r"(?:what\s+is|what's|what\s+does|meaning\s+of|means?|explain|define)\s+"
    r"(.+?)(?:\s+mean)?[\s?.!]*$",
    re.IGNORECASE,
)


def normalize_tone(tone: str) -> str:
    """Map a free-text tone cell ("Polite, requesting") to the known vocabulary."""
    low = tone.lower()
    for key in (*KNOWN_TONES, *_TONE_ALIASES):
        if key in low:
            return _TONE_ALIASES.get(key, key)
    return "neutral"


def _rows(text: str, heading: str, min_cells: int) -> Iterable[list[str]]:
    return (r for r in parse_section_table(text, heading) if len(r) >= min_cells)


def build_phrase_entries(text: str) -> list[PhraseEntry]:
    """Extract phrase entries from the five slang tables, in table order."""
    entries: list[PhraseEntry] = []

    for r in _rows(text, "Essential Phrases", 5):
        # Phrase | Pronunciation | Meaning | Tone | Usage
        entries.append(PhraseEntry(r[0], r[2], normalize_tone(r[3]), "Everyone", r[4], "-"))

    for r in _rows(text, "Bangalore-Specific Slang", 6):
        # Phrase | Meaning | Tone | Who Uses | When Appropriate | When NOT Appropriate
        entries.append(PhraseEntry(r[0], r[1], normalize_tone(r[2]), r[3], r[4], r[5]))

    for r in _rows(text, "IT/Startup Slang", 3):
        entries.append(
            PhraseEntry(
                r[0],
                r[1],
                "neutral",
                "IT professionals, startup employees",
                r[2],
                "Outside professional settings",
            )
        )

    for r in _rows(text, "Auto/Taxi Slang", 3):
        entries.append(PhraseEntry(r[0], r[1], "casual", "Commuters, auto/taxi users", r[2], "-"))

    for r in _rows(text, "Food-Related Slang", 3):
        entries.append(PhraseEntry(r[0], r[1], "neutral", "Everyone", r[2], "-"))

    return entries


def _phrase_candidates(query: str) -> list[str]:
    q = query.strip()
    out = [m.group(1).strip() for m in _QUOTED.finditer(q)]
    cue = _CUE.search(q)
    if cue:
        out.append(cue.group(1).strip(" \"'“”?"))
    out.append(q.strip(" ?!."))
    return [c for c in out if c]


class PhraseTable:
    """Case-insensitive phrase lookup; later tables override earlier duplicates."""

    def __init__(self, entries: Sequence[PhraseEntry]) -> None:
        self._entries: dict[str, PhraseEntry] = {}
        for e in entries:
            self._entries[e.phrase.lower()] = e
        # Longest first so a short phrase never masks a longer one containing it.
        self._by_length = sorted(self._entries.items(), key=lambda kv: len(kv[0]), reverse=True)

    def __len__(self) -> int:
        return len(self._entries)

    def phrases(self) -> list[str]:
        return [e.phrase for e in self._entries.values()]

    def lookup(self, query: str) -> PhraseEntry | None:
        """Exact key match first, then containment in either direction.

        Each candidate extracted from the query (quoted text, the object of
        "what is ...", then the whole query) is tried in turn.
        """
        candidates = [c.lower() for c in _phrase_candidates(query)]
        for cand in candidates:
            hit = self._entries.get(cand)
            if hit is not None:
                return hit
        for cand in candidates:
            for key, entry in self._by_length:
                if key in cand or cand in key:
                    return entry
        return None

    def detect(self, text: str) -> list[str]:
        """All known phrases appearing as whole words in ``text``, longest first."""
        low = text.lower()
        return [
            e.phrase
            for key, e in self._by_length
            if re.search(rf"(?<!\w){re.escape(key)}(?!\w)", low)
        ]
