"""Activity vocabulary: keyword detection, venue types and search keywords."""
from __future__ import annotations

import re
from typing import Optional, Tuple

from dayplanner.core.schemas import CityConfig

# (canonical activity, venue type, trigger words); first match wins.
ACTIVITY_KEYWORDS: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    ("meeting", "establishment", ("meeting", "appointment", "meet with", "interview", "call with")),
    ("breakfast", "restaurant", ("breakfast",)),
    ("brunch", "restaurant", ("brunch",)),
    ("lunch", "restaurant", ("lunch",)),
    ("dinner", "restaurant", ("dinner", "supper")),
    ("afternoon tea", "cafe", ("afternoon tea", "high tea")),
    ("coffee", "cafe", ("coffee", "cafe", "café", "espresso", "latte", "cappuccino", "flat white")),
    ("drinks", "bar", ("drinks", "drink", "cocktail", "cocktails", "pint", "pints", "beer", "wine", "pub", "bar")),
    ("museum", "museum", ("museum", "gallery", "exhibition", "exhibit")),
    ("show", "movie_theater", ("theatre", "theater", "show", "musical", "concert", "performance", "gig")),
    ("movie", "movie_theater", ("movie", "film", "cinema")),
    ("park", "park", ("park", "garden", "gardens", "picnic", "stroll", "walk", "zoo")),
    ("shopping", "shopping_mall", ("shopping", "shop", "shops", "boutique", "boutiques", "market", "mall")),
    ("sightseeing", "tourist_attraction", ("sightseeing", "sights", "tour", "landmark", "monument", "attraction")),
    ("gym", "gym", ("gym", "workout", "yoga", "swim")),
    ("meal", "restaurant", ("restaurant", "eat", "food", "meal", "dining", "bite")),
)

MEETING_WORDS = ("meeting", "appointment", "interview")

# venue type -> business category key in the city configuration
CATEGORY_FOR_TYPE = {
    "restaurant": "restaurant",
    "cafe": "coffee",
    "bar": "nightlife",
    "shopping_mall": "shopping",
    "movie_theater": "entertainment",
    "gym": "fitness",
}

_PATTERNS = tuple(
    (
        activity,
        venue_type,
        re.compile(r"\b(?:" + "|".join(re.escape(word) for word in words) + r")\b", re.IGNORECASE),
    )
    for activity, venue_type, words in ACTIVITY_KEYWORDS
)


def match_activity(text: str) -> Optional[Tuple[str, str, str]]:
    """Return ``(activity, venue type, matched word)`` for the first table hit."""

    for activity, venue_type, pattern in _PATTERNS:
        found = pattern.search(text or "")
        if found:
            return activity, venue_type, found.group(0)
    return None


def detect_activity_type(text: str) -> str:
    """Generic venue type for ``text``; ``establishment`` when nothing matches."""

    found = match_activity(text)
    return found[1] if found else "establishment"


def is_meeting(text: str) -> bool:
    lowered = (text or "").lower()
    return any(word in lowered for word in MEETING_WORDS)


def search_keywords(venue_type: Optional[str], city: CityConfig) -> Tuple[str, ...]:
    """City-specific business keywords for a venue type."""

    key = CATEGORY_FOR_TYPE.get(venue_type or "")
    if key is None:
        return ()
    return tuple(city.business_categories.get(key, ()))
