"""Raw Google Places Text Search payload models.

Only the fields the planner reads are declared; everything else in the
provider response is ignored.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from dayplanner.core.types import Lat, Lon, PriceLevel, Rating


class PlaceLatLng(BaseModel):
    lat: Lat
    lng: Lon

    model_config = ConfigDict(extra="ignore")


class PlaceGeometry(BaseModel):
    location: PlaceLatLng

    model_config = ConfigDict(extra="ignore")


class OpeningHours(BaseModel):
    open_now: Optional[bool] = None

    model_config = ConfigDict(extra="ignore")


class PlaceResult(BaseModel):
    """One entry of the ``results`` array."""

    place_id: Optional[str] = None
    name: str
    formatted_address: str = ""
    geometry: PlaceGeometry
    types: List[str] = Field(default_factory=list)
    rating: Optional[Rating] = None
    price_level: Optional[PriceLevel] = None
    opening_hours: Optional[OpeningHours] = None
    business_status: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class TextSearchResponse(BaseModel):
    status: str
    results: List[PlaceResult] = Field(default_factory=list)
    error_message: Optional[str] = None

    model_config = ConfigDict(extra="ignore")
