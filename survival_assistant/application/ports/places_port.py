"""Geo-places port for nearby point-of-interest search.

Why (SAM): The Geo Recommender only needs "places near here"; the provider
(Google Places today) stays in infrastructure.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from survival_assistant.domain.models import Coordinates, PlaceResult


@runtime_checkable
class PlacesPort(Protocol):
    def nearby(self, center: Coordinates, keyword: str, radius_m: int) -> list[PlaceResult]:
        """Return nearby places in the provider's relevance order.

        Raises:
            PlacesError: on any provider failure or timeout.
        """
        ...
