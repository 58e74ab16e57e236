"""Answer strategies behind a common ``answer(ctx)`` interface.

- GenerativeStrategy: prompt + matching context sections -> LLMPort.
- FallbackStrategy: rule-based templates over the Retrieval Engine.

The orchestrator picks one; a generative failure hands over to the fallback.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from survival_assistant.application.ports.llm_port import ChatMessage, LLMPort
from survival_assistant.application.services.geo_recommender import GENERIC_RECOMMENDATIONS
from survival_assistant.application.services.retrieval_engine import (
    RetrievalEngine,
    matching_sections,
)
from survival_assistant.domain.errors import LLMError
from survival_assistant.domain.models import (
    Document,
    Intent,
    Persona,
    PhraseEntry,
    RecommendationCandidate,
)
from survival_assistant.domain.services.personas import persona_instruction, persona_prefix

ASSISTANT_PREAMBLE = (
    "You are the Bangalore Survival Assistant, helping users navigate life in Bangalore, "
    "India. You are knowledgeable, friendly, and culturally aware."
)
CONTEXT_DISABLED = (
    "Local Bangalore context is currently DISABLED. Provide general advice without "
    "Bangalore-specific details. Do NOT reference any local context files. Give helpful "
    "general information that would apply anywhere."
)
NO_MATCHING_CONTEXT = (
    "None of the local context files matched this question. Answer from general knowledge "
    "of Bangalore and do not add a Sources line."
)
CLOSING = "Keep responses helpful, accurate, and appropriately detailed for the user's persona."

GENERIC_HELP = (
    "I'd be happy to help with questions about Bangalore! Try asking about local slang, "
    "food recommendations, traffic tips, or cultural etiquette."
)
CANNED_TIPS: dict[Intent, str] = {
    Intent.SLANG: (
        'Common Bangalore phrases: "Swalpa adjust maadi" (please adjust), "Guru" (buddy), '
        '"Sakkath" (awesome). What specific phrase would you like to know about?'
    ),
    Intent.FOOD: (
        "Must-try in Bangalore: Masala Dosa, Filter Coffee, Bisi Bele Bath. For quick eats, "
        "try a Darshini (standing restaurant). VV Puram Food Street is great for street food!"
    ),
    Intent.TRAFFIC: (
        "Bangalore traffic tip: Avoid Silk Board junction during peak hours (8-10 AM, 5-8 PM). "
        "Metro is your best friend for covered routes. For autos, always negotiate or ask "
        '"Meter hakri" (put the meter).'
    ),
    Intent.ETIQUETTE: (
        'Key etiquette: Use "Anna/Akka" (brother/sister) for strangers, remove shoes at temples '
        'and homes, "Adjust maadi" is the local motto. Bangalore is friendly - a smile goes a '
        "long way!"
    ),
}

_SOURCES_LINE = re.compile(r"^[^\w\n]*sources?\s*:\s*(.*)$", re.IGNORECASE | re.MULTILINE)


@dataclass(frozen=True)
class AnswerContext:
    """Everything a strategy may use for one request.

    ``documents`` holds the active, loaded documents in request order and is
    empty when context is disabled.
    """

    query: str
    persona: Persona
    context_enabled: bool
    intent: Intent
    documents: tuple[Document, ...] = ()
    recommendations: tuple[RecommendationCandidate, ...] | None = None

    @property
    def active_ids(self) -> tuple[str, ...]:
        return tuple(d.id for d in self.documents)


@dataclass(frozen=True)
class StrategyAnswer:
    text: str
    used_document_ids: tuple[str, ...]


class AnswerStrategy(Protocol):
    def answer(self, ctx: AnswerContext) -> StrategyAnswer: ...


def _in_order(ids: Sequence[str], order: Sequence[str]) -> tuple[str, ...]:
    wanted = set(ids)
    return tuple(i for i in order if i in wanted)


# ---------- Generative ----------


def _context_block(doc: Document, sections: Mapping[str, str]) -> str:
    body = "\n\n".join(f"### {name}\n{text}" for name, text in sections.items())
    return f"\n--- {doc.domain.upper()} ({doc.id}.md) ---\n{body}"


def build_system_prompt(
    persona: Persona,
    context: Sequence[tuple[Document, Mapping[str, str]]],
    context_enabled: bool = True,
) -> str:
    """Preamble, persona paragraph, context (or why there is none), closing line.

    ``context`` pairs each sent document with the sections chosen for the
    query; only those sections go into the prompt.
    """
    parts = [ASSISTANT_PREAMBLE, persona_instruction(persona)]
    if not context_enabled:
        parts.append(CONTEXT_DISABLED)
    elif not context:
        parts.append(NO_MATCHING_CONTEXT)
    else:
        names = ", ".join(f"{doc.id}.md" for doc, _ in context)
        parts.append(
            f"You have access to local knowledge from the following context files: {names}. "
            "Use this information to provide Bangalore-specific advice."
        )
        parts.append(
            'IMPORTANT: At the end of your response, add a line starting with "Sources:" '
            'followed by the context files you referenced (e.g., "Sources: food.md, slang.md"). '
            "Only list files you actually used in your response."
        )
        block = "\n".join(_context_block(doc, sections) for doc, sections in context)
        parts.append(
            "Use the following local knowledge to inform your responses. "
            f"Reference this information when relevant:\n{block}"
        )
    parts.append(CLOSING)
    return "\n\n".join(parts)


def split_sources(text: str, sent_ids: Sequence[str]) -> tuple[str, tuple[str, ...]]:
    """Strip the trailing ``Sources:`` line and resolve it against ``sent_ids``.

    Names outside ``sent_ids`` are ignored. Without a Sources line every sent
    id is attributed.
    """
    matches = list(_SOURCES_LINE.finditer(text))
    if not matches:
        return text.strip(), tuple(sent_ids)
    last = matches[-1]
    named = {
        tok.lower().removesuffix(".md")
        for tok in re.split(r"[,\s;]+", last.group(1))
        if tok
    }
    body = (text[: last.start()] + text[last.end() :]).strip()
    return body, _in_order(named, sent_ids)


class GenerativeStrategy:
    """Calls the LLM; raises LLMError on failure or empty output."""

    def __init__(self, llm: LLMPort, temperature: float = 0.7, max_tokens: int = 1000) -> None:
        self.llm = llm
        self.temperature = temperature
        self.max_tokens = max_tokens

    def answer(self, ctx: AnswerContext) -> StrategyAnswer:
        context = matching_sections(ctx.query, ctx.documents) if ctx.context_enabled else []
        system = build_system_prompt(ctx.persona, context, context_enabled=ctx.context_enabled)
        messages = [
            ChatMessage(role="system", content=system),
            ChatMessage(role="user", content=ctx.query),
        ]
        resp = self.llm.chat(messages, temperature=self.temperature, max_tokens=self.max_tokens)
        text, used = split_sources(resp.text or "", [doc.id for doc, _ in context])
        if not text:
            raise LLMError("empty completion")
        return StrategyAnswer(text=text, used_document_ids=used)


# ---------- Fallback ----------


def _given(value: str) -> str:
    return "" if value.strip() in ("", "-") else value.strip().rstrip(".")


def render_phrase(entry: PhraseEntry) -> str:
    """Meaning and tone, then usage, who uses it and when to avoid it (when known)."""
    parts = [f'"{entry.phrase}" means {entry.meaning} (tone: {entry.tone}).']
    usage = _given(entry.when_appropriate)
    if usage:
        parts.append(f"{usage}.")
    who = _given(entry.who_uses)
    if who:
        parts.append(f"Used by: {who}.")
    avoid = _given(entry.when_inappropriate)
    if avoid:
        parts.append(f"Avoid when: {avoid}.")
    return " ".join(parts)


class FallbackStrategy:
    """Rule-based answer from intent templates and retrieval matches."""

    def __init__(self, retrieval: RetrievalEngine) -> None:
        self.retrieval = retrieval

    def answer(self, ctx: AnswerContext) -> StrategyAnswer:
        prefix = persona_prefix(ctx.persona)
        if not ctx.context_enabled:
            return StrategyAnswer(
                text=(
                    f"{prefix}I can provide general information, but for Bangalore-specific "
                    f'advice, please enable the local context. Your question: "{ctx.query}"'
                ),
                used_document_ids=(),
            )

        active = ctx.active_ids

        if ctx.intent in (Intent.SLANG, Intent.OTHER):
            phrase = self._phrase(ctx)
            if phrase is not None:
                entry, source = phrase
                return StrategyAnswer(
                    text=prefix + render_phrase(entry), used_document_ids=(source,)
                )

        if ctx.intent is Intent.FOOD and ctx.recommendations:
            bullets = "\n".join(f"• {r.name}: {r.reasoning}" for r in ctx.recommendations)
            return StrategyAnswer(
                text=f"{prefix}Based on your location, here are some recommendations:\n\n{bullets}",
                used_document_ids=self._recommendation_sources(ctx),
            )

        match = self.retrieval.best_match(ctx.query, active, ctx.intent)
        if match is not None:
            lead = "Based on local knowledge:\n\n" if ctx.intent is Intent.OTHER else ""
            return StrategyAnswer(
                text=f"{prefix}{lead}{match.excerpt}", used_document_ids=(match.document_id,)
            )

        return StrategyAnswer(
            text=prefix + CANNED_TIPS.get(ctx.intent, GENERIC_HELP), used_document_ids=()
        )

    def _phrase(self, ctx: AnswerContext) -> tuple[PhraseEntry, str] | None:
        active = ctx.active_ids
        doc = self.retrieval.phrase_document(active)
        if doc is None:
            return None
        if ctx.intent is Intent.SLANG:
            entry = self.retrieval.explain_phrase(ctx.query, active)
        else:
            # Unclassified queries only count when they name a known phrase.
            detected = self.retrieval.detect_phrases(ctx.query, active)
            entry = self.retrieval.explain_phrase(detected[0], active) if detected else None
        return (entry, doc.id) if entry is not None else None

    @staticmethod
    def _recommendation_sources(ctx: AnswerContext) -> tuple[str, ...]:
        if all(r in GENERIC_RECOMMENDATIONS for r in ctx.recommendations or ()):
            return ()
        ids = [d.id for d in ctx.documents if d.domain in ("food", "city") and not d.is_empty]
        return _in_order(ids, ctx.active_ids)
