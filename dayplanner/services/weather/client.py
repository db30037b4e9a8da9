import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

import httpx
from pydantic import ValidationError

from dayplanner.core.config import ApiSettings
from dayplanner.core.errors import ProviderError
from dayplanner.core.schemas import ForecastPoint, WeatherCondition
from dayplanner.services.weather.schemas import ForecastItem, ForecastResponse

logger = logging.getLogger(__name__)

CACHE_TTL_S = 30 * 60
CacheKey = Tuple[float, float]


def classify_condition(weather_id: int, main: str = "") -> WeatherCondition:
    """Map an OpenWeatherMap condition id (or group name) to a condition."""

    if 200 <= weather_id < 300:
        return "storm"
    if 300 <= weather_id < 400:
        return "drizzle"
    if 500 <= weather_id < 600:
        return "rain"
    if 600 <= weather_id < 700:
        return "snow"
    if 700 <= weather_id < 800:
        return "fog"
    if weather_id == 800:
        return "clear"
    if 800 < weather_id < 900:
        return "clouds"

    group = main.lower()
    if "thunder" in group or "storm" in group:
        return "storm"
    for condition in ("drizzle", "rain", "snow", "clear", "clouds"):
        if condition in group:
            return condition  # type: ignore[return-value]
    return "fog" if group in {"mist", "fog", "haze", "smoke", "dust"} else "clouds"


def to_forecast_point(item: ForecastItem) -> ForecastPoint:
    tag = item.weather[0] if item.weather else None
    return ForecastPoint(
        timestamp=datetime.fromtimestamp(item.dt, tz=timezone.utc),
        temp_c=item.main.temp,
        condition=classify_condition(tag.id, tag.main) if tag else "clear",
        wind_speed_ms=item.wind.speed if item.wind and item.wind.speed is not None else None,
        description=tag.description if tag else None,
    )


class OpenWeatherMap:
    """Async client for the 5 day / 3 hour forecast with an in-process cache."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.openweathermap.org/data/2.5",
        timeout_s: float = 10.0,
        cache_ttl_s: float = CACHE_TTL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.api_key = api_key
        self.cache_ttl_s = cache_ttl_s
        self._clock = clock
        self._cache: Dict[CacheKey, Tuple[float, Tuple[ForecastPoint, ...]]] = {}
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"accept": "application/json"},
            timeout=httpx.Timeout(timeout_s, connect=5.0),
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "OpenWeatherMap":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._client.aclose()

    def _prune(self, now: float) -> None:
        stale = [key for key, (fetched, _) in self._cache.items() if now - fetched >= self.cache_ttl_s]
        for key in stale:
            del self._cache[key]

    @staticmethod
    def cache_key(lat: float, lng: float) -> CacheKey:
        return round(lat, 2), round(lng, 2)

    async def _aget(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.get(path, params={"appid": self.api_key, **params})
            response.raise_for_status()
        except httpx.TimeoutException:
            raise
        except httpx.HTTPError as exc:
            raise ProviderError(f"Weather request failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"Weather response is not JSON: {exc}") from exc

    async def forecast(self, lat: float, lng: float) -> Tuple[ForecastPoint, ...]:
        """Forecast points ordered by timestamp, served from cache when fresh."""

        key = self.cache_key(lat, lng)
        now = self._clock()
        cached = self._cache.get(key)
        if cached and now - cached[0] < self.cache_ttl_s:
            logger.debug(f"Using cached forecast for {key}")
            return cached[1]

        data = await self._aget("/forecast", {"lat": key[0], "lon": key[1], "units": "metric"})
        try:
            payload = ForecastResponse.model_validate(data)
        except ValidationError as exc:
            raise ProviderError(f"Malformed forecast response: {exc}") from exc
        if str(payload.cod) != "200":
            raise ProviderError(f"Weather API returned {payload.cod}: {payload.message}")

        points = tuple(sorted((to_forecast_point(item) for item in payload.items), key=lambda p: p.timestamp))
        self._prune(now)
        self._cache[key] = (now, points)
        logger.info(f"Fetched {len(points)} forecast points for {key}")
        return points


def create_weather_client(settings: ApiSettings) -> Optional[OpenWeatherMap]:
    """Instantiate the weather client, or ``None`` when no key is configured."""

    if not settings.weather_api_key:
        logger.warning("OPENWEATHER_API_KEY not set; weather checks disabled")
        return None
    return OpenWeatherMap(settings.weather_api_key)
