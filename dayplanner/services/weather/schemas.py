"""Raw OpenWeatherMap 5 day / 3 hour forecast payload models."""
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class WeatherTag(BaseModel):
    id: int
    main: str
    description: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class MainReadings(BaseModel):
    temp: float

    model_config = ConfigDict(extra="ignore")


class Wind(BaseModel):
    speed: Optional[float] = None

    model_config = ConfigDict(extra="ignore")


class ForecastItem(BaseModel):
    """One 3-hour slot; ``dt`` is a UTC unix timestamp."""

    dt: int
    main: MainReadings
    weather: List[WeatherTag] = Field(default_factory=list)
    wind: Optional[Wind] = None

    model_config = ConfigDict(extra="ignore")


class ForecastResponse(BaseModel):
    cod: Union[str, int]
    items: List[ForecastItem] = Field(default_factory=list, alias="list")
    message: Optional[Union[str, int, float]] = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True)
