"""Tests for service modules."""
from __future__ import annotations

import pytest
from unittest.mock import Mock, patch, AsyncMock
import httpx

from dayplanner.core.config import ApiSettings
from dayplanner.core.errors import NoResultsError, ProviderError
from dayplanner.core.schemas import LatLng, VenueQuery
from dayplanner.services import (
    GooglePlaces,
    OpenWeatherMap,
    classify_condition,
    create_places_client,
    create_weather_client,
)
from dayplanner.services.places.client import build_search_text, mentions_city


def _response(payload):
    response = Mock()  # httpx Response methods are sync
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def _place(name, address, place_id="p1", **extra):
    return {
        "place_id": place_id,
        "name": name,
        "formatted_address": address,
        "geometry": {"location": {"lat": 51.51, "lng": -0.14}},
        "types": ["cafe", "food"],
        "rating": 4.4,
        **extra,
    }


def _query(**overrides) -> VenueQuery:
    fields = dict(
        query="quiet coffee in Marylebone, London",
        type="cafe",
        keywords=("coffee shop", "tea room"),
        location_bias=LatLng(lat=51.5186, lng=-0.1527),
        radius_m=5000,
        city_slug="london",
    )
    fields.update(overrides)
    return VenueQuery(**fields)


def test_build_search_text_appends_missing_keyword():
    """The first city keyword not already in the query is appended."""
    assert build_search_text(_query()) == "quiet coffee in Marylebone, London coffee shop"
    assert build_search_text(_query(query="coffee shop in Soho")) == "coffee shop in Soho tea room"
    assert build_search_text(_query(keywords=())) == "quiet coffee in Marylebone, London"


def test_mentions_city_matches_whole_words():
    """City filtering ignores partial word matches."""
    assert mentions_city("1 Marylebone High St, London W1U 4LZ, UK", ["london"])
    assert not mentions_city("Londonderry BT48, Northern Ireland", ["london"])
    assert mentions_city("anything", [])


def test_factories_skip_missing_keys():
    """Clients are only created when their key is configured."""
    assert create_places_client(ApiSettings()) is None
    assert create_weather_client(ApiSettings()) is None
    with patch('httpx.AsyncClient'):
        assert isinstance(create_places_client(ApiSettings(google_places_api_key="k")), GooglePlaces)
        assert isinstance(create_weather_client(ApiSettings(weather_api_key="k")), OpenWeatherMap)


# Google Places Tests
class TestGooglePlaces:
    """Test suite for the Google Places client."""

    @pytest.fixture
    def mock_client(self):
        """Create a mock HTTPX client for testing."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.get.return_value = _response({"status": "ZERO_RESULTS", "results": []})
        return mock_client

    @pytest.fixture
    def places_client(self, mock_client):
        """Create a Google Places client with mocked HTTP client."""
        with patch('httpx.AsyncClient', return_value=mock_client):
            client = GooglePlaces(api_key="test-key")
            client._client = mock_client
            return client

    async def test_search_success(self, places_client, mock_client):
        """Primary result plus alternatives, in provider order."""
        mock_client.get.return_value = _response(
            {
                "status": "OK",
                "results": [
                    _place("Daunt Cafe", "83 Marylebone High St, London W1U 4QW, UK", "a"),
                    _place("Closed Cafe", "1 Baker St, London, UK", "b", business_status="CLOSED_PERMANENTLY"),
                    _place("Monocle Cafe", "18 Chiltern St, London W1U 7QA, UK", "c", opening_hours={"open_now": True}),
                ],
            }
        )

        result = await places_client.search(_query(), city_names=["london", "uk"])

        assert result.primary.name == "Daunt Cafe"
        assert result.primary.categories == ("cafe", "food")
        assert [venue.name for venue in result.alternatives] == ["Monocle Cafe"]
        assert result.alternatives[0].open_now is True
        mock_client.get.assert_called_once()

    async def test_parameter_passing(self, places_client, mock_client):
        """Query text, location bias, radius and type reach the API."""
        mock_client.get.return_value = _response({"status": "OK", "results": [_place("Cafe", "London")]})

        await places_client.search(_query())

        path = mock_client.get.call_args.args[0]
        params = mock_client.get.call_args.kwargs["params"]
        assert path == "/textsearch/json"
        assert params["key"] == "test-key"
        assert params["location"] == "51.5186,-0.1527"
        assert params["radius"] == 5000
        assert params["type"] == "cafe"

    async def test_generic_type_is_not_sent(self, places_client, mock_client):
        """The catch-all establishment type is left out of the request."""
        mock_client.get.return_value = _response({"status": "OK", "results": [_place("Office", "London")]})

        await places_client.search(_query(type="establishment"))

        assert "type" not in mock_client.get.call_args.kwargs["params"]

    async def test_zero_results(self, places_client, mock_client):
        """ZERO_RESULTS is a miss, not a failure."""
        with pytest.raises(NoResultsError):
            await places_client.search(_query())

    async def test_results_outside_city_are_discarded(self, places_client, mock_client):
        """Only addresses naming the city survive the filter."""
        mock_client.get.return_value = _response(
            {"status": "OK", "results": [_place("Cafe", "12 Main St, Springfield, USA")]}
        )
        with pytest.raises(NoResultsError):
            await places_client.search(_query(), city_names=["london"])

    async def test_error_status(self, places_client, mock_client):
        """Non-OK statuses become ProviderError."""
        mock_client.get.return_value = _response(
            {"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid."}
        )
        with pytest.raises(ProviderError, match="REQUEST_DENIED"):
            await places_client.search(_query())

    async def test_api_error_handling(self, places_client, mock_client):
        """HTTP errors become ProviderError."""
        mock_client.get.side_effect = httpx.HTTPStatusError(
            "API Error", request=Mock(), response=Mock()
        )
        with pytest.raises(ProviderError):
            await places_client.search(_query())

    async def test_non_json_body(self, places_client, mock_client):
        """A body that is not JSON becomes ProviderError."""
        response = _response(None)
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        mock_client.get.return_value = response
        with pytest.raises(ProviderError, match="not JSON"):
            await places_client.search(_query())

    async def test_timeout_propagates(self, places_client, mock_client):
        """Timeouts are left to the caller's deadline handling."""
        mock_client.get.side_effect = httpx.ReadTimeout("slow")
        with pytest.raises(httpx.TimeoutException):
            await places_client.search(_query())

    async def test_context_manager_usage(self):
        """Test GooglePlaces as async context manager."""
        with patch('httpx.AsyncClient') as mock_httpx:
            mock_client = AsyncMock()
            mock_httpx.return_value = mock_client

            async with GooglePlaces(api_key="test-key") as client:
                assert isinstance(client, GooglePlaces)

            mock_client.aclose.assert_called_once()


# OpenWeatherMap Tests
FORECAST_PAYLOAD = {
    "cod": "200",
    "cnt": 2,
    "list": [
        {
            "dt": 1749553200,
            "main": {"temp": 14.2, "humidity": 80},
            "weather": [{"id": 500, "main": "Rain", "description": "light rain"}],
            "wind": {"speed": 4.1},
        },
        {
            "dt": 1749542400,
            "main": {"temp": 12.0},
            "weather": [{"id": 800, "main": "Clear", "description": "clear sky"}],
        },
    ],
}


class TestOpenWeatherMap:
    """Test suite for the OpenWeatherMap client."""

    @pytest.fixture
    def clock(self):
        return Mock(return_value=1000.0)

    @pytest.fixture
    def mock_client(self):
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.get.return_value = _response(FORECAST_PAYLOAD)
        return mock_client

    @pytest.fixture
    def weather_client(self, mock_client, clock):
        with patch('httpx.AsyncClient', return_value=mock_client):
            client = OpenWeatherMap(api_key="test-key", clock=clock)
            client._client = mock_client
            return client

    async def test_forecast_parsing(self, weather_client, mock_client):
        """Points are sorted by time and carry normalised conditions."""
        points = await weather_client.forecast(51.5186, -0.1527)

        assert [point.condition for point in points] == ["clear", "rain"]
        assert points[0].timestamp.tzinfo is not None
        assert points[1].temp_c == 14.2
        assert points[1].wind_speed_ms == 4.1
        assert points[1].description == "light rain"
        params = mock_client.get.call_args.kwargs["params"]
        assert params == {"appid": "test-key", "lat": 51.52, "lon": -0.15, "units": "metric"}

    async def test_cache_hit_for_nearby_coordinates(self, weather_client, mock_client):
        """Coordinates rounding to the same key share one request."""
        first = await weather_client.forecast(51.5186, -0.1527)
        second = await weather_client.forecast(51.5201, -0.1520)

        assert first == second
        mock_client.get.assert_called_once()

    async def test_cache_expires_after_ttl(self, weather_client, mock_client, clock):
        """A stale entry triggers a new request."""
        await weather_client.forecast(51.5186, -0.1527)
        clock.return_value = 1000.0 + 31 * 60
        await weather_client.forecast(51.5186, -0.1527)

        assert mock_client.get.call_count == 2

    async def test_error_code(self, weather_client, mock_client):
        """A non-200 cod becomes ProviderError."""
        mock_client.get.return_value = _response({"cod": "401", "message": "Invalid API key"})
        with pytest.raises(ProviderError, match="401"):
            await weather_client.forecast(51.5, -0.1)

    async def test_non_json_body(self, weather_client, mock_client):
        """A body that is not JSON becomes ProviderError."""
        response = _response(None)
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        mock_client.get.return_value = response
        with pytest.raises(ProviderError, match="not JSON"):
            await weather_client.forecast(51.5, -0.1)

    async def test_stale_entries_are_evicted(self, weather_client, clock):
        """Expired forecasts are dropped when a new one is stored."""
        await weather_client.forecast(51.5186, -0.1527)
        clock.return_value = 1000.0 + 31 * 60
        await weather_client.forecast(40.7128, -74.0060)

        assert list(weather_client._cache) == [(40.71, -74.01)]

    async def test_close_method(self, weather_client, mock_client):
        """Test explicit client closure."""
        await weather_client.aclose()
        mock_client.aclose.assert_called_once()


@pytest.mark.parametrize(
    "weather_id,main,expected",
    [
        (211, "Thunderstorm", "storm"),
        (301, "Drizzle", "drizzle"),
        (502, "Rain", "rain"),
        (601, "Snow", "snow"),
        (741, "Fog", "fog"),
        (800, "Clear", "clear"),
        (803, "Clouds", "clouds"),
        (0, "Mist", "fog"),
    ],
)
def test_classify_condition(weather_id, main, expected):
    assert classify_condition(weather_id, main) == expected
