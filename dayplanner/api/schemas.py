from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from dayplanner.core.schemas import DroppedEntry, Itinerary, TransportMode
from dayplanner.core.types import TimeHHMM

PlanStatus = Literal["complete", "partial", "not_understood", "no_plan"]


class PlanRequest(BaseModel):
    """Request payload used to plan a single day."""

    query: str = Field(..., min_length=1, description="Free-text description of the day")
    plan_date: Optional[date] = Field(
        default=None,
        alias="date",
        description="Day to plan; defaults to today in the city's timezone",
    )
    start_time: Optional[TimeHHMM] = Field(default=None, description="Earliest start, HH:MM")
    city_slug: str = Field(default="london", description="City identifier, e.g. london, nyc, boston")
    enable_gap_filling: Optional[bool] = Field(
        default=None,
        description="Suggest activities for long free windows; server default when omitted",
    )
    preferred_mode: Optional[TransportMode] = Field(default=None, description="Preferred transport mode")
    history: List[str] = Field(default_factory=list, description="Earlier messages in the conversation")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class PlanResponse(BaseModel):
    """Planning outcome.

    ``complete`` when every entry was placed, ``partial`` when some were
    dropped, ``not_understood`` when the request could not be parsed and
    ``no_plan`` when nothing could be placed.
    """

    status: PlanStatus = Field(..., description="Overall planning outcome")
    title: Optional[str] = Field(default=None, description="Itinerary title")
    itinerary: Optional[Itinerary] = Field(default=None, description="Assembled itinerary")
    dropped: List[DroppedEntry] = Field(default_factory=list, description="Entries that could not be placed")
    parse_error: Optional[str] = Field(default=None, description="Why the request could not be understood")
    messages: List[str] = Field(default_factory=list, description="Progress log from the workflow")


class CityInfo(BaseModel):
    slug: str
    name: str
    timezone: str
    areas: List[str] = Field(default_factory=list)
