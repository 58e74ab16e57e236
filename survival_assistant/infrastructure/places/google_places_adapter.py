"""Google Places Nearby Search adapter (httpx)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from survival_assistant.application.ports.places_port import PlacesPort
from survival_assistant.domain.errors import PlacesError
from survival_assistant.domain.models import Coordinates, PlaceResult

logger = logging.getLogger(__name__)

NEARBY_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
_OK_STATUSES = frozenset({"OK", "ZERO_RESULTS"})


def _to_place(raw: dict[str, Any]) -> PlaceResult:
    location = (raw.get("geometry") or {}).get("location") or {}
    return PlaceResult(
        name=raw.get("name") or "Unknown",
        address=raw.get("vicinity") or raw.get("formatted_address") or "Address not available",
        rating=float(raw.get("rating") or 0),
        lat=float(location.get("lat") or 0),
        lng=float(location.get("lng") or 0),
        price_level=int(raw.get("price_level") or 0),
        types=tuple(raw.get("types") or ()),
        place_id=raw.get("place_id") or "",
    )


@dataclass
class GooglePlacesAdapter(PlacesPort):
    api_key: str
    timeout_s: float = 10.0
    base_url: str = NEARBY_SEARCH_URL
    transport: httpx.BaseTransport | None = None  # tests inject httpx.MockTransport

    def nearby(self, center: Coordinates, keyword: str, radius_m: int) -> list[PlaceResult]:
        params = {
            "location": f"{center.lat},{center.lng}",
            "radius": radius_m,
            "type": "restaurant",
            "keyword": keyword,
            "key": self.api_key,
        }
        try:
            with httpx.Client(timeout=self.timeout_s, transport=self.transport) as client:
                response = client.get(self.base_url, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as ex:
            raise PlacesError(f"places request timed out after {self.timeout_s}s") from ex
        except httpx.HTTPStatusError as ex:
            raise PlacesError(f"places HTTP error {ex.response.status_code}") from ex
        except (httpx.HTTPError, ValueError) as ex:
            raise PlacesError(f"places request failed: {ex}") from ex

        if not isinstance(data, dict):
            raise PlacesError(f"unexpected places payload of type {type(data).__name__}")
        status = data.get("status", "")
        if status not in _OK_STATUSES:
            detail = data.get("error_message") or ""
            raise PlacesError(f"Google Places API error: {status} {detail}".strip())

        try:
            results = [_to_place(r) for r in data.get("results") or []]
        except (AttributeError, TypeError, ValueError) as ex:
            raise PlacesError(f"malformed places result: {ex}") from ex
        logger.info("Places search '%s': %d results", keyword, len(results))
        return results
