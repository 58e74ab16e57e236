# survival_assistant/domain/models.py
# Domain models must be pure (no I/O, no external libs)
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum


class Persona(str, Enum):
    NEWBIE = "newbie"
    STUDENT = "student"
    IT_PROFESSIONAL = "it-professional"
    TOURIST = "tourist"


DEFAULT_PERSONA = Persona.NEWBIE


class Intent(str, Enum):
    SLANG = "slang"
    FOOD = "food"
    TRAFFIC = "traffic"
    ETIQUETTE = "etiquette"
    OTHER = "other"


class Capability(str, Enum):
    GENERATIVE_TEXT = "generative-text"
    SPEECH = "speech"
    VISION = "vision"
    GEO_PLACES = "geo-places"


@dataclass(frozen=True)
class Document:
    """
    Immutable knowledge document owned by the Document Store.

    - id:        catalogue id ("slang", "food", ...)
    - domain:    knowledge domain; equals id for the default catalogue
    - raw_text:  full file content ("" when the backing file was missing)
    - sections:  section name -> trimmed section text, in file order
    - loaded_at: when this version was read

    Reloading replaces the whole object; sections are never mutated in place.
    """

    id: str
    domain: str
    raw_text: str
    sections: Mapping[str, str]
    loaded_at: datetime

    @property
    def is_empty(self) -> bool:
        return not self.raw_text.strip()


@dataclass(frozen=True)
class DocumentInfo:
    """Catalogue entry returned by the "list available documents" operation."""

    id: str
    name: str
    domain: str
    is_loaded: bool


@dataclass(frozen=True)
class SearchMatch:
    document_id: str
    section_name: str
    excerpt: str


@dataclass(frozen=True)
class RateLimitRule:
    max_requests: int
    window: timedelta


@dataclass(frozen=True)
class RateDecision:
    """Outcome of one admission check; rejection is a normal outcome."""

    allowed: bool
    remaining: int
    reset_at: datetime
    retry_after: timedelta | None = None


@dataclass(frozen=True)
class CapabilityStatus:
    name: Capability
    configured: bool


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    def is_valid(self) -> bool:
        return -90.0 <= self.lat <= 90.0 and -180.0 <= self.lng <= 180.0


@dataclass(frozen=True)
class PlaceResult:
    """Raw nearby-place record as returned by a geo-places provider."""

    name: str
    address: str
    rating: float
    lat: float
    lng: float
    price_level: int
    types: tuple[str, ...]
    place_id: str


@dataclass(frozen=True)
class RecommendationCandidate:
    """
    One suggestion produced for a single request (never persisted).

    source_id carries the provider's place id on the live path and is empty
    on the document-derived fallback path.
    """

    name: str
    address: str
    rating: float
    distance_meters: int | None
    price_level: int | None
    categories: frozenset[str]
    source_id: str
    reasoning: str
    cultural_note: str | None = None
    context_factors: tuple[str, ...] = ()


@dataclass(frozen=True)
class PhraseEntry:
    phrase: str
    meaning: str
    tone: str
    who_uses: str
    when_appropriate: str
    when_inappropriate: str


@dataclass(frozen=True)
class AreaInfo:
    name: str
    description: str
    characteristics: tuple[str, ...]
    lat_range: tuple[float, float] | None = None
    lng_range: tuple[float, float] | None = None


UNKNOWN_AREA = AreaInfo(
    name="Unknown Area",
    description="Area information not available from context",
    characteristics=(),
)


@dataclass(frozen=True)
class FoodOption:
    name: str
    type: str
    price_range: str
    best_for: str


@dataclass(frozen=True)
class ResponseEnvelope:
    """Uniform answer returned by both the generative and the fallback path."""

    text: str
    used_document_ids: tuple[str, ...]
    persona: Persona
    context_was_active: bool
    generative_powered: bool
    recommendations: tuple[RecommendationCandidate, ...] | None = None


@dataclass(frozen=True)
class SessionPreferences:
    session_id: str
    persona: Persona = DEFAULT_PERSONA
    active_document_ids: tuple[str, ...] = field(default_factory=tuple)
    context_enabled: bool = True


@dataclass(frozen=True)
class SignText:
    """Text read from a photographed sign or menu.

    ``translated_text`` is set only when the detected language is not English.
    """

    text: str
    detected_language: str | None = None
    translated_text: str | None = None

    @property
    def for_interpretation(self) -> str:
        return self.translated_text or self.text


@dataclass(frozen=True)
class ImageInterpretation:
    extracted_text: str
    local_meaning: str
    cultural_significance: str
    associated_behavior: str
    practical_implications: str
    generative_powered: bool
    used_document_ids: tuple[str, ...] = ()
    translated_text: str | None = None
    detected_language: str | None = None


@dataclass(frozen=True)
class Transcription:
    """Speech-to-text output; ``text`` is empty when nothing was recognised."""

    text: str
    confidence: float
    language: str
    speech_powered: bool = True
