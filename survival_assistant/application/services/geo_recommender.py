"""Geo Recommender: nearby food suggestions for a coordinate.

Two paths:
1) Live: ask the places provider, rank in provider order, explain each hit.
2) Fallback: derive area and food options from the active city/food documents.
The result is never empty; with nothing to go on it returns two generic tips.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from survival_assistant.application.ports.places_port import PlacesPort
from survival_assistant.application.services.capability_registry import CapabilityRegistry
from survival_assistant.application.services.document_store import DocumentStore
from survival_assistant.domain.errors import DomainError
from survival_assistant.domain.models import (
    UNKNOWN_AREA,
    AreaInfo,
    Capability,
    Coordinates,
    Document,
    FoodOption,
    Persona,
    PlaceResult,
    RecommendationCandidate,
)
from survival_assistant.domain.services.geo import (
    areas_from_text,
    cultural_note,
    declared_area_boxes,
    haversine_m,
    match_area,
    place_reasoning,
    price_range,
)
from survival_assistant.domain.services.intent import category_keywords
from survival_assistant.domain.services.parsing import parse_section_table, parse_table
from survival_assistant.domain.services.personas import persona_recommendation_note

logger = logging.getLogger(__name__)

LIVE_LIMIT = 10
FALLBACK_LIMIT = 5
DEFAULT_KEYWORD = "restaurant food"

RESTAURANT_TYPES: tuple[FoodOption, ...] = (
    FoodOption(
        "Darshini (Quick Service)", "Quick service", "₹50-150", "Quick breakfast, budget meals"
    ),
    FoodOption(
        "Udupi Restaurant",
        "Vegetarian South Indian",
        "₹100-300",
        "Authentic dosas, idlis, thalis",
    ),
    FoodOption(
        "Military Hotel",
        "Non-vegetarian Karnataka",
        "₹200-400",
        "Mutton dishes, chicken curry, biryani",
    ),
)

_NO_CONTEXT = ("No local context available",)

GENERIC_RECOMMENDATIONS: tuple[RecommendationCandidate, ...] = (
    RecommendationCandidate(
        name="Look for nearby restaurants",
        address="",
        rating=0.0,
        distance_meters=None,
        price_level=None,
        categories=frozenset(),
        source_id="",
        reasoning=(
            "Without local context loaded, we recommend exploring nearby dining options "
            "using a maps application."
        ),
        context_factors=_NO_CONTEXT,
    ),
    RecommendationCandidate(
        name="Check online reviews",
        address="",
        rating=0.0,
        distance_meters=None,
        price_level=None,
        categories=frozenset(),
        source_id="",
        reasoning="Online review platforms can help you find well-rated restaurants in your area.",
        context_factors=_NO_CONTEXT,
    ),
)


def search_keyword(category_hint: str | None) -> str:
    if not category_hint:
        return DEFAULT_KEYWORD
    return category_keywords(category_hint)[0]


def food_options(text: str) -> list[FoodOption]:
    """Table rows of the food document, then restaurant types it mentions."""
    options = [
        FoodOption(
            name=r[0],
            type=r[1] or "Local food",
            price_range=r[2] or "Varies",
            best_for=r[3] if len(r) > 3 and r[3] else "Anytime",
        )
        for r in parse_table(text)
        if len(r) >= 3
    ]
    low = text.lower()
    for rt in RESTAURANT_TYPES:
        if rt.name.split(" ")[0].lower() in low:
            options.append(rt)
    return options


def _fallback_reasoning(
    option: FoodOption, area: AreaInfo, persona: Persona
) -> str:
    parts: list[str] = []
    if area is not UNKNOWN_AREA:
        parts.append(f"In {area.name}")
    parts.append(f"{option.name} ({option.type}) is a great choice")
    if option.best_for:
        parts.append(f"especially for {option.best_for}")
    if option.price_range:
        parts.append(f"at {option.price_range}")
    note = persona_recommendation_note(persona, option.price_range)
    if note:
        parts.append(note)
    if area.characteristics:
        parts.append(f"This area is known for {', '.join(area.characteristics[:2])}")
    return ". ".join(parts) + "."


class GeoRecommender:
    def __init__(
        self,
        store: DocumentStore,
        registry: CapabilityRegistry,
        places: PlacesPort | None = None,
    ) -> None:
        self.store = store
        self.registry = registry
        self.places = places

    def recommend(
        self,
        coordinates: Coordinates,
        category_hint: str | None = None,
        radius: int = 1000,
        persona: Persona = Persona.NEWBIE,
        active_ids: Sequence[str] = (),
    ) -> list[RecommendationCandidate]:
        food_doc = self._active_doc("food", active_ids)
        city_doc = self._active_doc("city", active_ids)

        if self.places is not None and self.registry.is_available(Capability.GEO_PLACES):
            try:
                live = self._live(coordinates, category_hint, radius, persona, food_doc, city_doc)
            except DomainError as ex:
                logger.warning("Places lookup failed, using document fallback: %s", ex)
                live = []
            if live:
                return live

        if food_doc is None and city_doc is None:
            return list(GENERIC_RECOMMENDATIONS)
        fallback = self._from_documents(coordinates, persona, food_doc, city_doc)
        return fallback or list(GENERIC_RECOMMENDATIONS)

    def _active_doc(self, domain: str, active_ids: Sequence[str]) -> Document | None:
        for document_id in active_ids:
            doc = self.store.loaded(document_id)
            if doc is not None and doc.domain == domain and not doc.is_empty:
                return doc
        return None

    # ===== Live path =====

    def _live(
        self,
        center: Coordinates,
        category_hint: str | None,
        radius: int,
        persona: Persona,
        food_doc: Document | None,
        city_doc: Document | None,
    ) -> list[RecommendationCandidate]:
        assert self.places is not None
        places = self.places.nearby(center, search_keyword(category_hint), radius)
        out: list[RecommendationCandidate] = []
        for place in places[:LIVE_LIMIT]:
            distance = haversine_m(center, Coordinates(place.lat, place.lng))
            reasoning = place_reasoning(distance, place, self._match_note(place, category_hint))
            note = persona_recommendation_note(persona, price_range(place.price_level))
            if note:
                reasoning = f"{reasoning} {note}"
            factors = ["Google Maps data"]
            if food_doc is not None:
                factors.append("Food context: loaded")
            if city_doc is not None:
                factors.append("City context: loaded")
            if place.rating > 0:
                factors.append(f"Rating: {place.rating:g}/5")
            if place.price_level > 0:
                factors.append(f"Price level: {place.price_level}/4")
            out.append(
                RecommendationCandidate(
                    name=place.name,
                    address=place.address,
                    rating=place.rating,
                    distance_meters=distance,
                    price_level=place.price_level,
                    categories=frozenset(place.types),
                    source_id=place.place_id,
                    reasoning=reasoning,
                    cultural_note=cultural_note(place),
                    context_factors=tuple(factors),
                )
            )
        return out

    @staticmethod
    def _match_note(place: PlaceResult, category_hint: str | None) -> str | None:
        if not category_hint:
            return None
        name = place.name.lower()
        types = [t.lower() for t in place.types]
        for kw in category_keywords(category_hint):
            if kw in name or any(kw in t for t in types):
                return f"matches your search for {category_hint}"
        return None

    # ===== Document path =====

    def _from_documents(
        self,
        coordinates: Coordinates,
        persona: Persona,
        food_doc: Document | None,
        city_doc: Document | None,
    ) -> list[RecommendationCandidate]:
        area = UNKNOWN_AREA
        if city_doc is not None:
            rows = parse_section_table(city_doc.raw_text, "Area Coordinates")
            declared = declared_area_boxes(rows)
            area = match_area(coordinates, areas_from_text(city_doc.raw_text, declared))

        options = food_options(food_doc.raw_text) if food_doc is not None else []
        out: list[RecommendationCandidate] = []
        for option in options[:FALLBACK_LIMIT]:
            factors: list[str] = []
            if area is not UNKNOWN_AREA:
                factors.append(f"Location: {area.name}")
            if food_doc is not None:
                factors.append("Food context: loaded")
            if city_doc is not None:
                factors.append("City context: loaded")
            factors.append(f"Cuisine type: {option.type}")
            out.append(
                RecommendationCandidate(
                    name=option.name,
                    address=area.name if area is not UNKNOWN_AREA else "",
                    rating=0.0,
                    distance_meters=None,
                    price_level=None,
                    categories=frozenset({option.type.lower()}),
                    source_id="",
                    reasoning=_fallback_reasoning(option, area, persona),
                    context_factors=tuple(factors),
                )
            )

        if not out and area is not UNKNOWN_AREA:
            out.append(
                RecommendationCandidate(
                    name=f"Explore local eateries in {area.name}",
                    address=area.name,
                    rating=0.0,
                    distance_meters=None,
                    price_level=None,
                    categories=frozenset(),
                    source_id="",
                    reasoning=(
                        f"Based on your location in {area.name}, you can find various dining "
                        f"options nearby. {area.description}"
                    ).strip(),
                    context_factors=(f"Location: {area.name}", "Context-based recommendation"),
                )
            )
        return out
