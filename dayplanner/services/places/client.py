import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from dayplanner.core.config import ApiSettings
from dayplanner.core.errors import NoResultsError, ProviderError
from dayplanner.core.schemas import LatLng, Venue, VenueQuery, VenueSearchResult
from dayplanner.services.places.schemas import PlaceResult, TextSearchResponse

logger = logging.getLogger(__name__)

MAX_ALTERNATIVES = 4


def build_search_text(query: VenueQuery) -> str:
    """Text Search query: the query text plus the first city keyword it lacks."""

    text = query.query.strip()
    lowered = text.lower()
    extra = next((keyword for keyword in query.keywords if keyword.lower() not in lowered), None)
    return f"{text} {extra}" if extra else text


def mentions_city(address: str, names: Sequence[str]) -> bool:
    """True when ``address`` contains one of ``names`` as whole words."""

    if not names:
        return True
    lowered = address.lower()
    return any(re.search(rf"\b{re.escape(name.lower())}\b", lowered) for name in names)


def to_venue(result: PlaceResult) -> Venue:
    return Venue(
        place_id=result.place_id,
        name=result.name,
        address=result.formatted_address,
        location=LatLng(lat=result.geometry.location.lat, lng=result.geometry.location.lng),
        categories=tuple(result.types),
        rating=result.rating,
        price_level=result.price_level,
        open_now=result.opening_hours.open_now if result.opening_hours else None,
    )


class GooglePlaces:
    """Thin async wrapper around the Google Places Text Search API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://maps.googleapis.com/maps/api/place",
        timeout_s: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"accept": "application/json"},
            timeout=httpx.Timeout(timeout_s, connect=5.0),
        )

    async def aclose(self) -> None:
        """Close the underlying HTTPX client."""

        await self._client.aclose()

    async def __aenter__(self) -> "GooglePlaces":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._client.aclose()

    async def _aget(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Execute an authenticated GET request and return the parsed JSON."""

        try:
            response = await self._client.get(path, params={"key": self.api_key, **params})
            response.raise_for_status()
        except httpx.TimeoutException:
            raise
        except httpx.HTTPError as exc:
            raise ProviderError(f"Places request failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"Places response is not JSON: {exc}") from exc

    async def search(self, query: VenueQuery, *, city_names: Sequence[str] = ()) -> VenueSearchResult:
        """Search venues and return the primary result plus alternatives.

        Results whose address does not mention one of ``city_names`` are
        discarded. Raises ``NoResultsError`` when nothing usable remains and
        ``ProviderError`` for transport or API failures. Timeouts propagate as
        ``httpx.TimeoutException`` so the caller can apply its deadline policy.
        """

        params: Dict[str, Any] = {
            "query": build_search_text(query),
            "location": f"{query.location_bias.lat},{query.location_bias.lng}",
            "radius": query.radius_m,
        }
        if query.type and query.type != "establishment":
            params["type"] = query.type
        logger.debug(f"Places text search: {params['query']!r} (type={params.get('type')})")

        data = await self._aget("/textsearch/json", params)
        try:
            payload = TextSearchResponse.model_validate(data)
        except ValidationError as exc:
            raise ProviderError(f"Malformed places response: {exc}") from exc

        if payload.status == "ZERO_RESULTS":
            raise NoResultsError(f"No places found for '{query.query}'")
        if payload.status != "OK":
            raise ProviderError(
                f"Places API returned status {payload.status}: {payload.error_message or 'no detail'}"
            )

        venues: List[Venue] = [
            to_venue(result)
            for result in payload.results
            if result.business_status in (None, "OPERATIONAL")
            and mentions_city(result.formatted_address, city_names)
        ]
        if not venues:
            raise NoResultsError(f"No places in the requested city for '{query.query}'")

        logger.info(f"Places search for '{query.query}' returned {len(venues)} venues")
        return VenueSearchResult(primary=venues[0], alternatives=venues[1 : MAX_ALTERNATIVES + 1])


def create_places_client(settings: ApiSettings) -> Optional[GooglePlaces]:
    """Instantiate the places client, or ``None`` when no key is configured."""

    if not settings.google_places_api_key:
        logger.warning("GOOGLE_PLACES_API_KEY not set; venue search disabled")
        return None
    return GooglePlaces(settings.google_places_api_key)
