"""Keyword-driven intent classification for the rule-based answer path."""

from __future__ import annotations

import re

from survival_assistant.domain.models import Intent

# Evaluated in order; the first pattern that matches wins.
INTENT_PATTERNS: tuple[tuple[Intent, re.Pattern[str]], ...] = (
    (Intent.SLANG, re.compile(r"slang|meaning|what does|kannada|phrase|say|speak")),
    (Intent.FOOD, re.compile(r"food|eat|restaurant|dosa|coffee|hungry|lunch|dinner|breakfast")),
    (Intent.TRAFFIC, re.compile(r"traffic|commute|metro|bus|auto|uber|ola|travel|route|reach")),
    (Intent.ETIQUETTE, re.compile(r"etiquette|culture|custom|behave|tip|greeting|temple|office")),
)

# Category hints understood by the geo recommender, keyed by query keyword.
FOOD_CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "dosa": ("dosa", "south indian", "udupi", "darshini"),
    "idli": ("idli", "south indian", "udupi", "darshini"),
    "biryani": ("biryani", "hyderabadi", "muslim"),
    "coffee": ("coffee", "cafe", "filter coffee"),
    "thali": ("thali", "meals", "south indian"),
    "pizza": ("pizza", "italian"),
    "burger": ("burger", "american"),
    "chinese": ("chinese", "indo chinese", "manchurian"),
    "north_indian": ("north indian", "punjabi", "mughlai"),
    "street_food": ("chaat", "street food", "snacks"),
    "dessert": ("dessert", "sweets", "bakery", "ice cream"),
    "vegetarian": ("vegetarian", "pure veg", "veg"),
    "non_vegetarian": ("non veg", "military hotel", "meat"),
}


def detect_intent(query: str) -> Intent:
    q = query.lower()
    for intent, pattern in INTENT_PATTERNS:
        if pattern.search(q):
            return intent
    return Intent.OTHER


def category_keywords(category: str) -> tuple[str, ...]:
    key = re.sub(r"\s+", "_", category.strip().lower())
    return FOOD_CATEGORY_KEYWORDS.get(key, (category.strip().lower(),))


def detect_food_category(query: str) -> str | None:
    """Return the first food category whose name appears in the query."""
    q = query.lower()
    for category in FOOD_CATEGORY_KEYWORDS:
        if category.replace("_", " ") in q:
            return category.replace("_", " ")
    return None
