# survival_assistant/domain/services/geo.py
# Pure domain services: no I/O, deterministic, no external libraries.
from __future__ import annotations

import math
import re
from collections.abc import Sequence

from survival_assistant.domain.models import UNKNOWN_AREA, AreaInfo, Coordinates, PlaceResult

EARTH_RADIUS_M = 6_371_000

PRICE_DESCRIPTIONS = ("budget-friendly", "affordable", "moderate", "upscale", "premium")
PRICE_RANGES = ("₹50-150", "₹100-300", "₹200-500", "₹500-1000", "₹1000+")

# Bounding boxes (lat_min, lat_max, lng_min, lng_max) for areas the city
# document may describe. An area is only offered when the document names it.
KNOWN_AREA_BOXES: dict[str, tuple[float, float, float, float]] = {
    "Koramangala": (12.93, 12.95, 77.60, 77.63),
    "Indiranagar": (12.97, 12.99, 77.63, 77.65),
    "HSR Layout": (12.90, 12.93, 77.63, 77.66),
    "Jayanagar": (12.92, 12.94, 77.57, 77.60),
    "Malleshwaram": (13.00, 13.02, 77.56, 77.58),
    "BTM Layout": (12.90, 12.92, 77.60, 77.63),
    "Whitefield": (12.96, 12.99, 77.73, 77.76),
    "Electronic City": (12.83, 12.86, 77.65, 77.68),
    "MG Road": (12.97, 12.98, 77.60, 77.62),
    "Basavanagudi": (12.94, 12.96, 77.56, 77.58),
}


def haversine_m(a: Coordinates, b: Coordinates) -> int:
    """Great-circle distance in whole metres."""
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return round(EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h)))


def distance_phrase(meters: int) -> str:
    if meters < 500:
        return f"Very close by ({meters}m)"
    if meters < 1000:
        return f"Within walking distance ({meters}m)"
    return f"{round(meters / 100) / 10}km away"


def rating_phrase(rating: float) -> str | None:
    if rating >= 4.5:
        return "highly rated by locals"
    if rating >= 4.0:
        return "well-reviewed"
    if rating > 0:
        return f"rated {rating:g}/5"
    return None


def price_phrase(level: int) -> str | None:
    return PRICE_DESCRIPTIONS[level] if 0 <= level < len(PRICE_DESCRIPTIONS) else None


def price_range(level: int) -> str:
    return PRICE_RANGES[level] if 0 <= level < len(PRICE_RANGES) else PRICE_RANGES[1]


def place_reasoning(distance_m: int, place: PlaceResult, match_note: str | None = None) -> str:
    """Short natural-language reasoning: distance, rating and price buckets."""
    parts = [distance_phrase(distance_m)]
    for part in (rating_phrase(place.rating), price_phrase(place.price_level), match_note):
        if part:
            parts.append(part)
    return ", ".join(parts) + "."


CULTURAL_NOTES = {
    "darshini": (
        "Darshini: Quick service standing-and-eating format. Order at counter, eat quickly."
    ),
    "udupi": (
        "Udupi restaurant: Authentic vegetarian South Indian cuisine. "
        "Try the dosas and thalis."
    ),
    "military": (
        "Military hotel style: Non-vegetarian Karnataka cuisine. "
        "Known for mutton and chicken dishes."
    ),
    "brewery": (
        "Bangalore has a thriving craft beer scene. Try house-brewed beers at microbreweries."
    ),
    "coffee": (
        "Filter coffee is a Bangalore specialty. "
        "Best enjoyed before 9 AM for authentic experience."
    ),
}


def cultural_note(place: PlaceResult) -> str | None:
    name = place.name.lower()
    types = [t.lower() for t in place.types]
    if "darshini" in name or "darshini" in types:
        return CULTURAL_NOTES["darshini"]
    if "udupi" in name:
        return CULTURAL_NOTES["udupi"]
    if any(k in name for k in ("military", "nagarjuna", "meghana")):
        return CULTURAL_NOTES["military"]
    if "bar" in types or "brewery" in name or "pub" in name:
        return CULTURAL_NOTES["brewery"]
    if "cafe" in types or "coffee" in name:
        return CULTURAL_NOTES["coffee"]
    return None


# ---------- Area matching ----------


def _centroid_distance(c: Coordinates, area: AreaInfo) -> float:
    assert area.lat_range is not None and area.lng_range is not None
    lat = (area.lat_range[0] + area.lat_range[1]) / 2
    lng = (area.lng_range[0] + area.lng_range[1]) / 2
    return math.sqrt((c.lat - lat) ** 2 + (c.lng - lng) ** 2)


def _contains(c: Coordinates, area: AreaInfo) -> bool:
    assert area.lat_range is not None and area.lng_range is not None
    return (
        area.lat_range[0] <= c.lat <= area.lat_range[1]
        and area.lng_range[0] <= c.lng <= area.lng_range[1]
    )


def match_area(c: Coordinates, areas: Sequence[AreaInfo]) -> AreaInfo:
    """Containing box first, else nearest centroid, else ``UNKNOWN_AREA``."""
    boxed = [a for a in areas if a.lat_range is not None and a.lng_range is not None]
    for area in boxed:
        if _contains(c, area):
            return area
    if not boxed:
        return UNKNOWN_AREA
    return min(boxed, key=lambda a: _centroid_distance(c, a))


def area_details(text: str, area_name: str) -> tuple[str, tuple[str, ...]]:
    """Description and characteristics from lines of ``text`` mentioning the area.

    The description is the text after the first colon on the last matching
    line; characteristics are its comma-separated parts.
    """
    description = ""
    characteristics: list[str] = []
    needle = area_name.lower()
    for line in text.splitlines():
        if needle not in line.lower() or ":" not in line:
            continue
        tail = line.split(":", 1)[1].strip()
        description = tail
        characteristics.extend(
            p.strip(" .*") for p in tail.split(",") if p.strip(" .*") and len(p.strip()) < 50
        )
    return description, tuple(characteristics)


def _name_pattern(name: str) -> re.Pattern[str]:
    return re.compile(r"\s*".join(re.escape(p) for p in name.lower().split()), re.IGNORECASE)


def areas_from_text(
    text: str,
    declared: dict[str, tuple[float, float, float, float]] | None = None,
) -> list[AreaInfo]:
    """Build the named-area table from document text.

    ``declared`` boxes (from the document's own coordinate table) take
    precedence over the built-in ones; built-in areas are listed only when
    their name appears in the text.
    """
    boxes: dict[str, tuple[float, float, float, float]] = {}
    for name, box in KNOWN_AREA_BOXES.items():
        if _name_pattern(name).search(text):
            boxes[name] = box
    for name, box in (declared or {}).items():
        boxes[name] = box

    areas: list[AreaInfo] = []
    for name, (lat_min, lat_max, lng_min, lng_max) in boxes.items():
        description, characteristics = area_details(text, name)
        areas.append(
            AreaInfo(
                name=name,
                description=description,
                characteristics=characteristics,
                lat_range=(lat_min, lat_max),
                lng_range=(lng_min, lng_max),
            )
        )
    return areas


def declared_area_boxes(
    rows: Sequence[Sequence[str]],
) -> dict[str, tuple[float, float, float, float]]:
    """Parse ``Area | Lat Min | Lat Max | Lng Min | Lng Max`` rows; bad rows are skipped."""
    boxes: dict[str, tuple[float, float, float, float]] = {}
    for row in rows:
        if len(row) < 5:
            continue
        try:
            lat_min, lat_max, lng_min, lng_max = (float(x) for x in row[1:5])
        except ValueError:
            continue
        boxes[row[0]] = (
            min(lat_min, lat_max),
            max(lat_min, lat_max),
            min(lng_min, lng_max),
            max(lng_min, lng_max),
        )
    return boxes
