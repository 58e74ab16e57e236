"""Tests for the Geo Recommender (live and document paths)."""

import os
from datetime import UTC, datetime

import httpx

from survival_assistant.application.ports.clock_port import ClockPort
from survival_assistant.application.ports.document_loader_port import DocumentPayload
from survival_assistant.application.ports.places_port import PlacesPort
from survival_assistant.application.services.capability_registry import CapabilityRegistry
from survival_assistant.application.services.document_store import DocumentStore
from survival_assistant.application.services.geo_recommender import (
    GENERIC_RECOMMENDATIONS,
    LIVE_LIMIT,
    GeoRecommender,
    food_options,
    search_keyword,
)
from survival_assistant.config.settings import PACKAGED_CONTEXT_DIR
from survival_assistant.domain.errors import DocumentError, PlacesError
from survival_assistant.domain.models import Capability, Coordinates, Persona, PlaceResult
from survival_assistant.infrastructure.places.google_places_adapter import GooglePlacesAdapter

KORAMANGALA = Coordinates(12.935, 77.615)


class FakeClock(ClockPort):
    def now(self) -> datetime:
        return datetime(2024, 1, 1, tzinfo=UTC)


class PackagedLoader:
    """Reads the packaged context files; names outside ``allowed`` are missing."""

    def __init__(self, allowed: set[str]) -> None:
        self.allowed = allowed

    def load(self, path: str) -> DocumentPayload:
        name = os.path.basename(path)
        if name not in self.allowed:
            raise DocumentError(f"missing {path}")
        with open(os.path.join(PACKAGED_CONTEXT_DIR, name), encoding="utf-8") as f:
            return DocumentPayload(text=f.read())


class FakePlaces:
    def __init__(self, places: list[PlaceResult] | None = None, fail: bool = False) -> None:
        self.places = places or []
        self.fail = fail
        self.calls: list[tuple[Coordinates, str, int]] = []

    def nearby(self, center: Coordinates, keyword: str, radius_m: int) -> list[PlaceResult]:
        self.calls.append((center, keyword, radius_m))
        if self.fail:
            raise PlacesError("quota exceeded")
        return self.places


def place(name: str, lat: float, lng: float, **kw: object) -> PlaceResult:
    return PlaceResult(
        name=name,
        address=str(kw.get("address", "80 Feet Road")),
        rating=float(kw.get("rating", 0.0)),  # type: ignore[arg-type]
        lat=lat,
        lng=lng,
        price_level=int(kw.get("price_level", 0)),  # type: ignore[call-overload]
        types=tuple(kw.get("types", ("restaurant",))),  # type: ignore[arg-type]
        place_id=str(kw.get("place_id", name.lower().replace(" ", "-"))),
    )


def make_recommender(
    files: set[str], places: PlacesPort | None = None, maps: bool = True
) -> GeoRecommender:
    store = DocumentStore(PackagedLoader(files), FakeClock(), context_dir="/ctx")
    store.load_all()
    registry = CapabilityRegistry({Capability.GEO_PLACES: maps})
    return GeoRecommender(store=store, registry=registry, places=places)


class TestHelpers:
    def test_search_keyword(self) -> None:
        assert search_keyword(None) == "restaurant food"
        assert search_keyword("dosa") == "dosa"
        assert search_keyword("street food") == "chaat"

    def test_food_options_from_table_and_types(self) -> None:
        text = (
            "| Dish | Type | Price | Best For |\n"
            "| Masala Dosa | Breakfast | ₹60 | Mornings |\n"
            "| Chai | Drink | ₹10 |\n"
            "Try a darshini for speed."
        )
        options = food_options(text)
        assert [o.name for o in options] == ["Masala Dosa", "Chai", "Darshini (Quick Service)"]
        assert options[1].best_for == "Anytime"


class TestLivePath:
    def test_live_results_with_reasoning(self) -> None:
        places = FakePlaces(
            [
                place("Udupi Upahar", 12.9352, 77.6152, rating=4.6, price_level=1),
                place("Far Cafe", 12.95, 77.63, types=("cafe",)),
            ]
        )
        recs = make_recommender({"food.md", "city.md"}, places).recommend(
            KORAMANGALA, category_hint="dosa", active_ids=["food", "city"]
        )
        assert places.calls == [(KORAMANGALA, "dosa", 1000)]
        assert [r.name for r in recs] == ["Udupi Upahar", "Far Cafe"]
        first = recs[0]
        assert first.source_id == "udupi-upahar"
        assert first.distance_meters is not None and first.distance_meters < 100
        assert first.reasoning.startswith("Very close by (")
        assert "highly rated by locals" in first.reasoning
        assert "matches your search for dosa" in first.reasoning
        assert "safe and popular choice for newcomers" in first.reasoning
        assert first.cultural_note is not None and "Udupi" in first.cultural_note
        assert first.context_factors[:3] == (
            "Google Maps data",
            "Food context: loaded",
            "City context: loaded",
        )
        assert "Rating: 4.6/5" in first.context_factors

    def test_live_results_are_capped(self) -> None:
        places = FakePlaces([place(f"P{i}", 12.935, 77.615) for i in range(15)])
        recs = make_recommender(set(), places).recommend(KORAMANGALA)
        assert len(recs) == LIVE_LIMIT

    def test_places_error_falls_back_to_documents(self) -> None:
        recs = make_recommender({"food.md", "city.md"}, FakePlaces(fail=True)).recommend(
            KORAMANGALA, active_ids=["food", "city"]
        )
        assert recs
        assert all(r.source_id == "" for r in recs)
        assert recs[0].name == "Masala Dosa"

    def test_malformed_places_payload_falls_back_to_documents(self) -> None:
        places = GooglePlacesAdapter(
            api_key="maps-key",
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json=["unexpected"])),
        )
        recs = make_recommender({"food.md", "city.md"}, places).recommend(
            KORAMANGALA, active_ids=["food", "city"]
        )
        assert recs and recs[0].name == "Masala Dosa"
        assert all(r.source_id == "" for r in recs)

    def test_places_not_called_when_capability_off(self) -> None:
        places = FakePlaces([place("Somewhere", 12.935, 77.615)])
        make_recommender(set(), places, maps=False).recommend(KORAMANGALA)
        assert places.calls == []

    def test_empty_live_result_falls_back(self) -> None:
        recs = make_recommender(set(), FakePlaces([])).recommend(KORAMANGALA)
        assert recs == list(GENERIC_RECOMMENDATIONS)


class TestDocumentPath:
    def test_generic_pair_without_documents(self) -> None:
        """Far from any known area and no documents: two generic tips."""
        recs = make_recommender(set()).recommend(Coordinates(51.5, -0.12))
        assert [r.name for r in recs] == ["Look for nearby restaurants", "Check online reviews"]
        assert all(r.context_factors == ("No local context available",) for r in recs)

    def test_inactive_documents_are_ignored(self) -> None:
        recs = make_recommender({"food.md", "city.md"}).recommend(KORAMANGALA, active_ids=[])
        assert recs == list(GENERIC_RECOMMENDATIONS)

    def test_food_and_city_documents(self) -> None:
        recs = make_recommender({"food.md", "city.md"}).recommend(
            KORAMANGALA, persona=Persona.STUDENT, active_ids=["food", "city"]
        )
        assert 0 < len(recs) <= 5
        first = recs[0]
        assert first.name == "Masala Dosa"
        assert first.address == "Koramangala"
        assert first.reasoning.startswith("In Koramangala. Masala Dosa (South Indian breakfast)")
        assert "Location: Koramangala" in first.context_factors
        assert "Cuisine type: South Indian breakfast" in first.context_factors

    def test_city_only_gives_area_suggestion(self) -> None:
        recs = make_recommender({"city.md"}).recommend(KORAMANGALA, active_ids=["city"])
        assert len(recs) == 1
        assert recs[0].name == "Explore local eateries in Koramangala"
        assert "startup hub" in recs[0].reasoning

    def test_point_outside_boxes_still_names_an_area(self) -> None:
        recs = make_recommender({"city.md"}).recommend(
            Coordinates(13.2, 77.7), active_ids=["city"]
        )
        assert recs[0].name.startswith("Explore local eateries in ")
        assert "Unknown Area" not in recs[0].name
