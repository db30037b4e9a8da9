"""OpenWeatherMap forecast integration.

Public API:
    - OpenWeatherMap: Async forecast client with a 30 minute in-process cache
    - create_weather_client: Factory function to create the client from settings
    - classify_condition: Map provider condition ids to planner conditions
"""
from dayplanner.services.weather.client import (
    OpenWeatherMap,
    classify_condition,
    create_weather_client,
)
from dayplanner.services.weather.schemas import ForecastItem, ForecastResponse

__all__ = [
    "OpenWeatherMap",
    "classify_condition",
    "create_weather_client",
    "ForecastItem",
    "ForecastResponse",
]
