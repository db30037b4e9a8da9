"""Google Places venue search.

Public API:
    - GooglePlaces: Async HTTP client for the Places Text Search endpoint
    - create_places_client: Factory function to create the client from settings
"""
from dayplanner.services.places.client import (
    GooglePlaces,
    build_search_text,
    create_places_client,
    mentions_city,
)
from dayplanner.services.places.schemas import PlaceResult, TextSearchResponse

__all__ = [
    "GooglePlaces",
    "build_search_text",
    "create_places_client",
    "mentions_city",
    "PlaceResult",
    "TextSearchResponse",
]
