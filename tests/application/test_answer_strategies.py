"""Tests for the generative and fallback answer strategies."""

from collections.abc import Sequence
from datetime import UTC, datetime
from types import MappingProxyType

import pytest

from survival_assistant.application.ports.llm_port import ChatMessage, LLMResponse
from survival_assistant.application.services.retrieval_engine import matching_sections
from survival_assistant.application.use_cases.answer_strategies import (
    CONTEXT_DISABLED,
    NO_MATCHING_CONTEXT,
    AnswerContext,
    GenerativeStrategy,
    build_system_prompt,
    render_phrase,
    split_sources,
)
from survival_assistant.domain.errors import LLMError
from survival_assistant.domain.models import Document, Intent, Persona, PhraseEntry
from survival_assistant.domain.services.parsing import parse_sections


def doc(id_: str, text: str) -> Document:
    return Document(
        id=id_,
        domain=id_,
        raw_text=text,
        sections=MappingProxyType(parse_sections(text)),
        loaded_at=datetime(2024, 1, 1, tzinfo=UTC),
    )


class RecordingLLM:
    def __init__(self, text: str) -> None:
        self.text = text
        self.messages: list[ChatMessage] = []

    def chat(
        self, messages: Sequence[ChatMessage], temperature: float = 0.7, max_tokens: int = 1000
    ) -> LLMResponse:
        self.messages = list(messages)
        return LLMResponse(text=self.text)


class TestSplitSources:
    def test_strips_line_and_keeps_sent_order(self) -> None:
        text, used = split_sources("Eat dosa.\n\nSources: food.md, slang.md", ["slang", "food"])
        assert text == "Eat dosa."
        assert used == ("slang", "food")

    def test_unsent_names_are_ignored(self) -> None:
        _, used = split_sources("Answer\nSources: weather.md, food.md", ["food"])
        assert used == ("food",)

    def test_no_line_attributes_every_sent_document(self) -> None:
        text, used = split_sources("Just an answer.", ["food", "city"])
        assert text == "Just an answer."
        assert used == ("food", "city")

    def test_line_naming_nothing_valid(self) -> None:
        text, used = split_sources("Answer\nSources: none", ["food"])
        assert text == "Answer"
        assert used == ()

    def test_markdown_decorated_line(self) -> None:
        text, used = split_sources("Answer\n**Sources:** Food.md", ["food"])
        assert text == "Answer"
        assert used == ("food",)


class TestSystemPrompt:
    def test_lists_documents_and_persona(self) -> None:
        food = doc("food", "## Dosa\nCrispy.")
        prompt = build_system_prompt(Persona.STUDENT, [(food, dict(food.sections))])
        assert "food.md" in prompt
        assert "### dosa\nCrispy." in prompt
        assert "budget-friendly" in prompt
        assert 'starting with "Sources:"' in prompt

    def test_context_disabled(self) -> None:
        prompt = build_system_prompt(Persona.NEWBIE, [], context_enabled=False)
        assert CONTEXT_DISABLED in prompt
        assert "Sources:" not in prompt

    def test_nothing_matched(self) -> None:
        prompt = build_system_prompt(Persona.NEWBIE, [])
        assert NO_MATCHING_CONTEXT in prompt
        assert CONTEXT_DISABLED not in prompt
        assert 'starting with "Sources:"' not in prompt


class TestGenerativeStrategy:
    def test_sends_only_matching_sections(self) -> None:
        llm = RecordingLLM("Have a dosa.\nSources: food.md")
        food = doc("food", "## Dosa\nCrispy.\n\n## Coffee\nFilter coffee, strong.")
        ctx = AnswerContext(
            query="Where can I get a dosa?",
            persona=Persona.NEWBIE,
            context_enabled=True,
            intent=Intent.FOOD,
            documents=(food, doc("city", "")),
        )
        answer = GenerativeStrategy(llm).answer(ctx)
        assert answer.text == "Have a dosa."
        assert answer.used_document_ids == ("food",)
        system, user = llm.messages
        assert system.role == "system" and "Crispy." in system.content
        assert "Filter coffee" not in system.content
        assert "city.md" not in system.content
        assert user.content == "Where can I get a dosa?"

    def test_non_matching_document_is_neither_sent_nor_attributed(self) -> None:
        llm = RecordingLLM("Dosa is a crispy crepe.")
        ctx = AnswerContext(
            query="Where can I get a dosa?",
            persona=Persona.NEWBIE,
            context_enabled=True,
            intent=Intent.FOOD,
            documents=(
                doc("traffic", "## Metro\nPurple Line runs east to west."),
                doc("food", "## Dosa\nCrispy."),
            ),
        )
        answer = GenerativeStrategy(llm).answer(ctx)
        # no Sources line: only the documents that were sent are attributed
        assert answer.used_document_ids == ("food",)
        system = llm.messages[0].content
        assert "traffic.md" not in system
        assert "Purple Line" not in system

    def test_no_match_sends_no_context(self) -> None:
        llm = RecordingLLM("Hello there!")
        ctx = AnswerContext(
            "hello", Persona.NEWBIE, True, Intent.OTHER, (doc("food", "## Dosa\nCrispy."),)
        )
        answer = GenerativeStrategy(llm).answer(ctx)
        assert answer.used_document_ids == ()
        assert NO_MATCHING_CONTEXT in llm.messages[0].content

    def test_only_sources_line_is_an_empty_answer(self) -> None:
        ctx = AnswerContext("q", Persona.NEWBIE, True, Intent.OTHER, (doc("food", "x"),))
        with pytest.raises(LLMError):
            GenerativeStrategy(RecordingLLM("Sources: food.md")).answer(ctx)


class TestMatchingSections:
    def test_heading_or_text_matches(self) -> None:
        food = doc("food", "## Filter Coffee\nStrong.\n\n## Dosa\nCrispy, try Vidyarthi Bhavan.")
        got = matching_sections("Best filter coffee?", [food])
        assert [(d.id, list(s)) for d, s in got] == [("food", ["filter-coffee"])]
        got = matching_sections("Is Vidyarthi Bhavan open?", [food])
        assert [list(s) for _, s in got] == [["dosa"]]

    def test_empty_and_unrelated_documents_are_dropped(self) -> None:
        docs = [doc("city", ""), doc("traffic", "## Metro\nPurple Line.")]
        assert matching_sections("dosa", docs) == []


class TestRenderPhrase:
    def test_full_entry(self) -> None:
        entry = PhraseEntry(
            "Maga", "Dude", "casual", "Young men", "Chatting with friends", "Talking to elders"
        )
        assert render_phrase(entry) == (
            '"Maga" means Dude (tone: casual). Chatting with friends. '
            "Used by: Young men. Avoid when: Talking to elders."
        )

    def test_placeholders_are_skipped(self) -> None:
        entry = PhraseEntry("Guru", "Buddy", "friendly", "Everyone", "Auto drivers", "-")
        assert render_phrase(entry) == (
            '"Guru" means Buddy (tone: friendly). Auto drivers. Used by: Everyone.'
        )
        bare = PhraseEntry("Guru", "Buddy", "friendly", "-", "-", "-")
        assert render_phrase(bare) == '"Guru" means Buddy (tone: friendly).'
