"""Static city data shipped with the planner.

Each city module exposes ``CITY`` (a ``CityConfig``), ``AREAS`` (the area
knowledge), ``TRAVEL_TABLE`` (tuned walking/transit/driving minutes keyed by
lowercase area pairs) and ``TRANSIT_LINES`` (optional line details per pair).
"""
from types import MappingProxyType

from dayplanner.data import boston, london, nyc

CITY_MODULES = MappingProxyType(
    {
        london.CITY.slug: london,
        nyc.CITY.slug: nyc,
        boston.CITY.slug: boston,
    }
)

SLUG_ALIASES = MappingProxyType(
    {
        "new-york": "nyc",
        "new york": "nyc",
        "new york city": "nyc",
        "newyork": "nyc",
        "ny": "nyc",
        "ldn": "london",
        "bos": "boston",
    }
)

__all__ = ["CITY_MODULES", "SLUG_ALIASES"]
