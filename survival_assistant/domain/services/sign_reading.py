"""Rule-based reading of sign, menu and notice text against context documents.

Used when no generative backend is available: each field is assembled from
lines of the matching documents, with fixed wording when nothing matches.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from survival_assistant.domain.models import Document

SNIPPET_CHARS = 300

FOOD_SIGN_WORDS = (
    "dosa", "idli", "coffee", "tea", "chai", "biryani", "rice", "roti", "menu", "price",
    "rs", "₹", "veg", "non-veg", "meals", "tiffin", "restaurant", "hotel", "darshini",
    "udupi", "thali", "sambar", "chutney",
)
TRANSPORT_SIGN_WORDS = (
    "auto", "taxi", "cab", "bus", "metro", "station", "stop", "fare", "meter", "ola",
    "uber", "bmtc", "ksrtc", "platform", "route", "parking",
)
PRICE_SIGN_WORDS = ("rs", "₹", "rupee", "price", "rate", "fare", "charge", "cost", "fee")
CULTURAL_WORDS = ("temple", "festival", "tradition", "custom", "religious", "sacred")
BEHAVIOR_WORDS = (
    "remove", "shoes", "dress", "code", "silence", "queue", "line", "wait", "no",
    "prohibited", "allowed", "entry",
)
TRAFFIC_WORDS = ("auto", "taxi", "bus", "metro", "parking", "stop", "stand", "fare", "meter")

NO_CONTEXT = "Context files not loaded - unable to provide {what}"
DEFAULT_SIGNIFICANCE = (
    "This appears to be a general notice without specific cultural significance in the "
    "local context."
)
DEFAULT_BEHAVIOR = (
    "Follow standard local etiquette. When in doubt, observe what locals do or ask politely."
)
DEFAULT_IMPLICATIONS = (
    "As a newcomer, if you're unsure about what this sign means, don't hesitate to ask a "
    "local. Most people are happy to help explain."
)


@dataclass(frozen=True)
class SignReading:
    local_meaning: str
    cultural_significance: str
    associated_behavior: str
    practical_implications: str
    used_document_ids: tuple[str, ...] = ()


def _mentions(text: str, word: str) -> bool:
    if not word[0].isalnum():
        return word in text
    return re.search(rf"\b{re.escape(word)}\b", text) is not None


def _has_word(text: str, words: Sequence[str]) -> bool:
    return any(_mentions(text, w) for w in words)


def is_food_sign(text: str) -> bool:
    return _has_word(text.lower(), FOOD_SIGN_WORDS)


def is_transport_sign(text: str) -> bool:
    return _has_word(text.lower(), TRANSPORT_SIGN_WORDS)


def is_price_sign(text: str) -> bool:
    return _has_word(text.lower(), PRICE_SIGN_WORDS)


def snippet(needle: str, content: str) -> str | None:
    """First line containing ``needle`` plus its neighbours, minus headings and rules.

    The result is truncated to ``SNIPPET_CHARS`` characters.
    """
    lines = content.splitlines()
    needle = needle.lower()
    for i, line in enumerate(lines):
        if needle not in line.lower():
            continue
        around = [
            ln.strip()
            for ln in lines[max(0, i - 1) : i + 3]
            if ln.strip() and not ln.startswith("#") and not ln.startswith("|---")
        ]
        joined = " ".join(around).strip()
        if joined:
            return joined[:SNIPPET_CHARS] + "..." if len(joined) > SNIPPET_CHARS else joined
    return None


class _Reader:
    """Collects snippets and remembers which documents supplied them."""

    def __init__(self, documents: Sequence[Document]) -> None:
        self.by_domain: dict[str, Document] = {}
        for doc in documents:
            if not doc.is_empty:
                self.by_domain.setdefault(doc.domain, doc)
        self.used: list[str] = []

    def find(self, domain: str, needle: str) -> str | None:
        doc = self.by_domain.get(domain)
        if doc is None:
            return None
        found = snippet(needle, doc.raw_text)
        if found is not None and doc.id not in self.used:
            self.used.append(doc.id)
        return found

    def find_keywords(self, domain: str, text: str, words: Sequence[str]) -> list[str]:
        if domain not in self.by_domain:
            return []
        found = []
        for word in words:
            if _mentions(text, word):
                hit = self.find(domain, word)
                if hit is not None and hit not in found:
                    found.append(hit)
        return found


def read_sign(text: str, documents: Sequence[Document]) -> SignReading:
    """Interpret sign text using the slang, city, food, etiquette and traffic documents."""
    reader = _Reader(documents)
    if not reader.by_domain:
        return SignReading(
            local_meaning=text,
            cultural_significance=NO_CONTEXT.format(what="cultural interpretation"),
            associated_behavior=NO_CONTEXT.format(what="behavior guidance"),
            practical_implications=NO_CONTEXT.format(what="practical implications"),
        )

    lowered = text.lower()

    meanings = []
    for domain, label in (
        ("slang", "Local phrase meaning"),
        ("city", "Local context"),
        ("food", "Food reference"),
    ):
        hit = reader.find(domain, lowered)
        if hit is not None:
            meanings.append(f"{label}: {hit}")
    local_meaning = "\n".join(meanings) or (
        f'The text "{text}" appears to be a local sign or notice. Without specific context '
        "matches, the literal meaning applies."
    )

    significance = []
    hit = reader.find("etiquette", lowered)
    if hit is not None:
        significance.append(hit)
    for found in reader.find_keywords("city", lowered, CULTURAL_WORDS):
        if found not in significance:
            significance.append(found)

    behaviors = reader.find_keywords("etiquette", lowered, BEHAVIOR_WORDS)
    behaviors += [
        b for b in reader.find_keywords("traffic", lowered, TRAFFIC_WORDS) if b not in behaviors
    ]

    implications = []
    if is_food_sign(lowered) and "food" in reader.by_domain:
        implications.append("This appears to be a food-related sign.")
        hit = reader.find("food", lowered)
        if hit is not None:
            implications.append(f"Tip: {hit}")
    if is_transport_sign(lowered) and "traffic" in reader.by_domain:
        implications.append("This appears to be a transport-related sign.")
        hit = reader.find("traffic", lowered)
        if hit is not None:
            implications.append(f"Tip: {hit}")
    if is_price_sign(lowered):
        implications.append(
            "This shows pricing information. Prices in India are typically in Rupees (₹)."
        )
        implications.append(
            "Tip: Always confirm the final price before purchasing or using a service."
        )

    order = [d.id for d in documents]
    return SignReading(
        local_meaning=local_meaning,
        cultural_significance="\n".join(significance) or DEFAULT_SIGNIFICANCE,
        associated_behavior="\n".join(behaviors) or DEFAULT_BEHAVIOR,
        practical_implications="\n".join(implications) or DEFAULT_IMPLICATIONS,
        used_document_ids=tuple(i for i in order if i in reader.used),
    )


# ---------- Generative reply ----------

_REPLY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "cultural": ("culture", "tradition", "local", "bangalore", "india", "custom", "significance"),
    "behavior": ("should", "expect", "typical", "common", "usually", "often", "behavior"),
    "practical": ("tip", "recommend", "suggest", "practical", "advice", "note", "remember"),
}
_REPLY_DEFAULTS = {
    "cultural": "This appears to be a local sign or notice in Bangalore.",
    "behavior": "Follow standard local etiquette when encountering such signs.",
    "practical": "When in doubt, ask a local for clarification.",
}
_MEANING = re.compile(r"(?:literal|meaning|says?|reads?)[:\s]*([^.]+\.)", re.IGNORECASE)
_CULTURAL = re.compile(r"(?:cultural|significance|context)[:\s]*([^.]+\.)", re.IGNORECASE)
_PRACTICAL = re.compile(
    r"(?:practical|implication|should|recommend)[:\s]*([^.]+\.)", re.IGNORECASE
)


def _sentences_about(reply: str, kind: str) -> str:
    sentences = [s.strip() for s in re.split(r"[.!?]+", reply) if s.strip()]
    relevant = [s for s in sentences if any(k in s.lower() for k in _REPLY_KEYWORDS[kind])]
    if relevant:
        return ". ".join(relevant[:2]) + "."
    return _REPLY_DEFAULTS[kind]


def split_reply(reply: str) -> SignReading:
    """Spread a free-form model reply over the four interpretation fields."""
    reply = reply.strip()
    meaning = _MEANING.search(reply)
    cultural = _CULTURAL.search(reply)
    practical = _PRACTICAL.search(reply)
    return SignReading(
        local_meaning=meaning.group(1).strip() if meaning else reply.split(".")[0] + ".",
        cultural_significance=(
            cultural.group(1).strip() if cultural else _sentences_about(reply, "cultural")
        ),
        associated_behavior=_sentences_about(reply, "behavior"),
        practical_implications=(
            practical.group(1).strip() if practical else _sentences_about(reply, "practical")
        ),
    )
