"""Outdoor classification and forecast suitability checks."""
from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence, Tuple

from dayplanner.core.schemas import ForecastPoint, Venue, WeatherVerdict

OUTDOOR_TYPES = frozenset(
    {
        "park",
        "zoo",
        "amusement_park",
        "tourist_attraction",
        "stadium",
        "campground",
        "rv_park",
        "beach",
        "lake",
        "natural_feature",
        "hiking_area",
        "golf_course",
    }
)
OUTDOOR_KEYWORDS = (
    "park",
    "garden",
    "trail",
    "outdoor",
    "open air",
    "open-air",
    "market",
    "patio",
    "terrace",
    "rooftop",
    "beach",
    "pier",
    "square",
    "common",
    "heath",
)

UNSUITABLE_CONDITIONS = frozenset({"rain", "drizzle", "storm", "snow"})
MIN_TEMP_C = 5.0
MAX_TEMP_C = 35.0
MAX_WIND_MS = 15.0


def is_outdoor_venue(venue: Venue) -> bool:
    """Classify from category tags first, then from keywords in the name."""

    categories = {category.lower() for category in venue.categories}
    if categories & OUTDOOR_TYPES:
        return True
    name = venue.name.lower()
    return any(keyword in name for keyword in OUTDOOR_KEYWORDS)


def nearest_forecast(forecast: Sequence[ForecastPoint], at: datetime) -> Optional[ForecastPoint]:
    if not forecast:
        return None
    return min(forecast, key=lambda point: abs((point.timestamp - at).total_seconds()))


def assess_conditions(point: ForecastPoint) -> Tuple[bool, Optional[str]]:
    """Return ``(suitable, reason)`` for outdoor use."""

    if point.condition in UNSUITABLE_CONDITIONS:
        return False, f"{point.condition} expected"
    if point.temp_c < MIN_TEMP_C:
        return False, f"too cold ({point.temp_c:.0f}°C)"
    if point.temp_c > MAX_TEMP_C:
        return False, f"too hot ({point.temp_c:.0f}°C)"
    if point.wind_speed_ms is not None and point.wind_speed_ms > MAX_WIND_MS:
        return False, f"strong wind ({point.wind_speed_ms:.0f} m/s)"
    return True, None


class WeatherSuitabilityFilter:
    """Checks outdoor venues against the forecast nearest their scheduled time."""

    def check(self, venue: Venue, forecast: Sequence[ForecastPoint], at: datetime) -> WeatherVerdict:
        if not is_outdoor_venue(venue):
            return WeatherVerdict(is_outdoor=False, suitable=True)

        point = nearest_forecast(forecast, at)
        if point is None:
            return WeatherVerdict(is_outdoor=True, suitable=True, reason="no forecast available")

        suitable, reason = assess_conditions(point)
        return WeatherVerdict(
            is_outdoor=True,
            suitable=suitable,
            condition=point.condition,
            temp_c=point.temp_c,
            reason=reason,
        )
