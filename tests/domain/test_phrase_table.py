"""Tests for the slang phrase table."""

import os

from survival_assistant.config.settings import PACKAGED_CONTEXT_DIR
from survival_assistant.domain.services.phrase_table import (
    PhraseTable,
    build_phrase_entries,
    normalize_tone,
)


def slang_text() -> str:
    with open(os.path.join(PACKAGED_CONTEXT_DIR, "slang.md"), encoding="utf-8") as f:
        return f.read()


def table() -> PhraseTable:
    return PhraseTable(build_phrase_entries(slang_text()))


class TestNormalizeTone:
    def test_known_tone_in_free_text(self) -> None:
        assert normalize_tone("Polite, requesting") == "polite"
        assert normalize_tone("Enthusiastic") == "enthusiastic"

    def test_alias_and_default(self) -> None:
        assert normalize_tone("Warm") == "affectionate"
        assert normalize_tone("Mysterious") == "neutral"


class TestBuildPhraseEntries:
    def test_all_five_tables_are_read(self) -> None:
        entries = build_phrase_entries(slang_text())
        phrases = {e.phrase for e in entries}
        assert {"Namaskara", "Sakkath", "Prepone", "Meter hakri", "Khali dosa"} <= phrases

    def test_slang_row_fields(self) -> None:
        entry = next(e for e in build_phrase_entries(slang_text()) if e.phrase == "Sakkath")
        assert entry.meaning == "Awesome, excellent, superb"
        assert entry.tone == "enthusiastic"
        assert entry.who_uses == "Youth and locals"
        assert entry.when_appropriate == "Praising food, a movie or an event"
        assert entry.when_inappropriate == "Formal meetings"

    def test_text_without_tables(self) -> None:
        assert build_phrase_entries("# Nothing here\n\nJust prose.") == []


class TestPhraseTable:
    def test_later_duplicate_overrides(self) -> None:
        """A phrase listed twice keeps the entry from the later table."""
        entry = table().lookup("Swalpa adjust maadi")
        assert entry is not None
        assert "unofficial motto" in entry.meaning
        assert len(table()) == len(set(p.lower() for p in table().phrases()))

    def test_lookup_is_case_insensitive(self) -> None:
        entry = table().lookup("SAKKATH")
        assert entry is not None and entry.phrase == "Sakkath"

    def test_lookup_from_question(self) -> None:
        what_is = table().lookup("What is sakkath?")
        what_does = table().lookup("what does maga mean?")
        assert what_is is not None and what_is.phrase == "Sakkath"
        assert what_does is not None and what_does.phrase == "Maga"

    def test_quoted_phrase_wins(self) -> None:
        entry = table().lookup('My friend said "guru" to the driver, why?')
        assert entry is not None and entry.phrase == "Guru"

    def test_longest_phrase_wins_on_partial_match(self) -> None:
        entry = table().lookup("swalpa adjust")
        assert entry is not None and entry.phrase == "Swalpa adjust maadi"

    def test_unknown_phrase(self) -> None:
        assert table().lookup("xyzzy") is None

    def test_detect_whole_words_longest_first(self) -> None:
        detected = table().detect("Oota aayta, maga!")
        assert detected[0] == "Oota aayta"
        assert set(detected) == {"Oota aayta", "Maga", "Oota"}

    def test_detect_ignores_substrings_of_words(self) -> None:
        assert table().detect("The gurukul was bombastic") == []
