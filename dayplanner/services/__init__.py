"""External service integrations for day planning.

- Places: venue search through Google Places Text Search
- Weather: OpenWeatherMap 5 day / 3 hour forecasts

Each service module exports:
    - create_*_client: Factory to create the API client from ``ApiSettings``
    - Response schemas: Pydantic models validating the raw provider payloads

Example Usage:
    >>> from dayplanner.services import create_places_client
    >>> from dayplanner.core.config import ApiSettings
    >>>
    >>> settings = ApiSettings.from_env()
    >>> client = create_places_client(settings)
"""

# Venue search
from dayplanner.services.places import (
    GooglePlaces,
    create_places_client,
)

# Weather forecasts
from dayplanner.services.weather import (
    OpenWeatherMap,
    classify_condition,
    create_weather_client,
)

__all__ = [
    # Places
    "GooglePlaces",
    "create_places_client",
    # Weather
    "OpenWeatherMap",
    "classify_condition",
    "create_weather_client",
]
