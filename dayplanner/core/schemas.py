"""Pydantic data models for the day itinerary planner.

The models fall into four groups:

- Knowledge: ``LatLng``, ``CrowdLevels``, ``Area``, ``CityConfig`` and the
  ``TravelEstimate`` produced from them.
- Request: ``ActivityEntry`` and ``ParsedRequest`` as produced by the parser.
  Entries are never mutated after creation; later stages attach their results
  in separate records.
- Resolution: ``Venue``, ``VenueQuery``, ``VenueSearchResult``,
  ``ForecastPoint``, ``WeatherVerdict``, ``Candidate`` and ``EntryResolution``,
  the normalised boundary between external providers and the assembler.
- Output: ``ResolvedActivity``, ``DroppedEntry`` and ``Itinerary``, plus the
  LangGraph ``State``/``PlanContext`` pair.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Tuple

from langchain_core.messages import AnyMessage
from langgraph.graph.message import add_messages
from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from dayplanner.core.types import (
    CitySlug,
    CrowdLevel,
    Lat,
    Lon,
    Minutes,
    PriceLevel,
    Rating,
    TimeHHMM,
)

_CLOCK_PATTERN = re.compile(r"^(?:[01]\d|2[0-3]):[0-5]\d$")


class TransportMode(str, Enum):
    """Transport modes, declared in tie-break order."""

    WALK = "walk"
    TRANSIT = "transit"
    DRIVING = "driving"
    CYCLING = "cycling"


MODE_PRIORITY: Tuple[TransportMode, ...] = tuple(TransportMode)


class EntryKind(str, Enum):
    FIXED = "fixed"
    FLEXIBLE = "flexible"


WeatherCondition = Literal["clear", "clouds", "rain", "drizzle", "storm", "snow", "fog"]
ErrorName = Literal[
    "ParseError",
    "ResolutionMiss",
    "NoResultsError",
    "ProviderTimeout",
    "ProviderError",
    "PlacementConflict",
]


class LatLng(BaseModel):
    """Geographic coordinate pair."""

    lat: Lat
    lng: Lon

    model_config = ConfigDict(extra="forbid", frozen=True)


class CrowdLevels(BaseModel):
    """Typical crowding on a 1 (empty) to 5 (packed) scale."""

    morning: CrowdLevel = 3
    afternoon: CrowdLevel = 3
    evening: CrowdLevel = 3
    weekend: CrowdLevel = 3

    model_config = ConfigDict(extra="forbid", frozen=True)


class Area(BaseModel):
    """A named neighbourhood in a city knowledge base.

    Attributes:
        name: Display name; unique per city under lowercase normalisation.
        coordinates: Representative centre point of the area.
        characteristics: Descriptive tags matched against user preferences.
        popular_for: Activity tags the area is known for.
        crowd_levels: Crowding per time of day plus a weekend override.
        neighbors: Names of adjacent areas. Not guaranteed to be symmetric.
        alternative_names: Other spellings or names people use for the area.
        common_misspellings: Misspellings resolved directly to this area.
        landmarks: Landmarks located in the area, used for location matching.
    """

    name: str = Field(min_length=1)
    coordinates: LatLng
    characteristics: Tuple[str, ...] = ()
    popular_for: Tuple[str, ...] = ()
    crowd_levels: CrowdLevels = Field(default_factory=CrowdLevels)
    neighbors: Tuple[str, ...] = ()
    alternative_names: Tuple[str, ...] = ()
    common_misspellings: Tuple[str, ...] = ()
    landmarks: Tuple[str, ...] = ()

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def key(self) -> str:
        return self.name.lower()


class TransitDetails(BaseModel):
    lines: Tuple[str, ...] = ()
    changes: Minutes = 0

    model_config = ConfigDict(extra="forbid", frozen=True)


class TravelEstimate(BaseModel):
    """Minutes by mode between two areas and the recommended mode."""

    walking_minutes: Minutes
    transit_minutes: Minutes
    driving_minutes: Minutes
    cycling_minutes: Optional[Minutes] = None
    recommended_mode: TransportMode
    transit_details: Optional[TransitDetails] = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    def minutes(self, mode: TransportMode) -> Optional[int]:
        """Return the minutes for ``mode`` or ``None`` when it was not estimated."""

        return {
            TransportMode.WALK: self.walking_minutes,
            TransportMode.TRANSIT: self.transit_minutes,
            TransportMode.DRIVING: self.driving_minutes,
            TransportMode.CYCLING: self.cycling_minutes,
        }[mode]

    @computed_field(return_type=int)
    @property
    def travel_minutes(self) -> int:
        """Minutes of the recommended mode, used for travel buffers."""

        value = self.minutes(self.recommended_mode)
        return value if value is not None else self.transit_minutes


class CityConfig(BaseModel):
    """Static configuration of a supported city."""

    slug: CitySlug
    name: str
    timezone: str
    default_location: LatLng
    major_areas: Tuple[str, ...] = ()
    transport_modes: Tuple[TransportMode, ...] = MODE_PRIORITY
    business_categories: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)
    city_aliases: Tuple[str, ...] = ()

    model_config = ConfigDict(extra="forbid", frozen=True)


class ActivityEntry(BaseModel):
    """One activity extracted from the request text.

    ``time`` holds a ``HH:MM`` clock time for fixed entries and an optional
    relative descriptor ("afterwards", "before that", "evening") for flexible
    ones. ``sequence`` is the order of mention in the request. ``anchor_sequence``
    pins a flexible entry to the gap after the fixed entry with that sequence
    (``-1`` for the start of the day).
    """

    activity: str = Field(min_length=1)
    location: Optional[str] = None
    time: Optional[str] = None
    venue_preference: Optional[str] = None
    kind: EntryKind
    sequence: int = Field(default=0, ge=0)
    duration_minutes: Optional[int] = Field(default=None, gt=0, le=12 * 60)
    search_type: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    requirements: Tuple[str, ...] = ()
    anchor_sequence: Optional[int] = Field(default=None, ge=-1)
    suggested: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def validate_time(self) -> "ActivityEntry":
        if self.kind is EntryKind.FIXED and not (self.time and _CLOCK_PATTERN.match(self.time)):
            raise ValueError("fixed entries require an HH:MM clock time")
        return self

    @property
    def is_fixed(self) -> bool:
        return self.kind is EntryKind.FIXED


class ParsedRequest(BaseModel):
    """Structured request produced by the parser."""

    fixed_time_entries: List[ActivityEntry] = Field(default_factory=list)
    flexible_time_entries: List[ActivityEntry] = Field(default_factory=list)
    start_location: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_kinds(self) -> "ParsedRequest":
        if any(entry.kind is not EntryKind.FIXED for entry in self.fixed_time_entries):
            raise ValueError("fixed_time_entries may only contain fixed entries")
        if any(entry.kind is not EntryKind.FLEXIBLE for entry in self.flexible_time_entries):
            raise ValueError("flexible_time_entries may only contain flexible entries")
        return self

    @property
    def entries(self) -> List[ActivityEntry]:
        """All entries in mention order."""

        return sorted(
            [*self.fixed_time_entries, *self.flexible_time_entries],
            key=lambda entry: entry.sequence,
        )

    @property
    def is_empty(self) -> bool:
        return not self.fixed_time_entries and not self.flexible_time_entries


class Venue(BaseModel):
    """A venue candidate normalised from a search provider."""

    place_id: Optional[str] = None
    name: str
    address: str = ""
    location: LatLng
    categories: Tuple[str, ...] = ()
    rating: Optional[Rating] = None
    price_level: Optional[PriceLevel] = None
    open_now: Optional[bool] = None
    is_placeholder: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)


class VenueQuery(BaseModel):
    """Search request handed to the venue search provider."""

    query: str = Field(min_length=1)
    type: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    location_bias: LatLng
    radius_m: int = Field(default=5000, gt=0, le=50000)
    preference_text: Optional[str] = None
    city_slug: CitySlug

    model_config = ConfigDict(extra="forbid", frozen=True)


class VenueSearchResult(BaseModel):
    """Primary venue plus ranked alternatives."""

    primary: Venue
    alternatives: List[Venue] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    def ranked(self) -> List[Venue]:
        return [self.primary, *self.alternatives]


class ForecastPoint(BaseModel):
    """One forecast sample at an absolute, timezone-aware timestamp."""

    timestamp: datetime
    temp_c: float
    condition: WeatherCondition
    wind_speed_ms: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class WeatherVerdict(BaseModel):
    is_outdoor: bool
    suitable: bool
    condition: Optional[WeatherCondition] = None
    temp_c: Optional[float] = None
    reason: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class Candidate(BaseModel):
    """A ranked venue option for an entry, with its forecast when outdoor."""

    area: Optional[Area] = None
    venue: Venue
    rank: int = Field(ge=0)
    forecast: Tuple[ForecastPoint, ...] = ()

    model_config = ConfigDict(extra="forbid", frozen=True)


class EntryResolution(BaseModel):
    """Outcome of resolving one entry before placement."""

    entry: ActivityEntry
    area: Optional[Area] = None
    candidates: List[Candidate] = Field(default_factory=list)
    miss_reason: Optional[str] = None
    miss_error: Optional[ErrorName] = None

    model_config = ConfigDict(extra="forbid")


class ResolvedActivity(BaseModel):
    """An entry placed on the timeline."""

    entry: ActivityEntry
    area: Optional[Area] = None
    venue: Venue
    start_time: datetime
    end_time: datetime
    travel_minutes_from_previous: Minutes = 0
    travel_mode: Optional[TransportMode] = None
    weather: Optional[WeatherVerdict] = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def validate_window(self) -> "ResolvedActivity":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    @computed_field(return_type=bool)
    @property
    def suggested(self) -> bool:
        return self.entry.suggested

    @computed_field(return_type=int)
    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)


class DroppedEntry(BaseModel):
    """An entry that could not be placed, with the reason."""

    entry: ActivityEntry
    reason: str
    error: ErrorName

    model_config = ConfigDict(extra="forbid", frozen=True)


class Itinerary(BaseModel):
    """Ordered single-day plan.

    Every consecutive pair satisfies
    ``start[i + 1] >= end[i] + travel_minutes_from_previous[i + 1]``.
    """

    title: str
    city_slug: CitySlug
    plan_date: date
    activities: List[ResolvedActivity] = Field(default_factory=list)
    dropped: List[DroppedEntry] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_timeline(self) -> "Itinerary":
        for previous, current in zip(self.activities, self.activities[1:]):
            if current.start_time < previous.start_time:
                raise ValueError("activities must be sorted by start_time")
            buffer = timedelta(minutes=current.travel_minutes_from_previous)
            if current.start_time < previous.end_time + buffer:
                raise ValueError(
                    f"'{current.entry.activity}' starts before '{previous.entry.activity}' "
                    "ends plus travel time"
                )
        return self

    @property
    def is_empty(self) -> bool:
        return not self.activities


class PlanContext(BaseModel):
    """Immutable per-request configuration for a planning run."""

    query: str = Field(min_length=1)
    city_slug: CitySlug = "london"
    plan_date: date
    start_time: Optional[TimeHHMM] = None
    enable_gap_filling: bool = False
    preferred_mode: Optional[TransportMode] = None
    history: Tuple[str, ...] = ()

    model_config = ConfigDict(extra="forbid", frozen=True)


class State(BaseModel):
    """LangGraph state flowing through parse, resolve and assemble.

    Attributes:
        messages: Progress log rendered in the API response.
        deadline: ``time.monotonic()`` value after which external calls abort.
        parsed: Output of the request parser.
        parse_error: Set when the parser failed; planning then stops.
        resolutions: Per-entry resolution results, fixed entries first.
        itinerary: Final assembled plan.
    """

    messages: Annotated[List[AnyMessage], add_messages] = Field(default_factory=list)
    deadline: Optional[float] = None
    parsed: Optional[ParsedRequest] = None
    parse_error: Optional[str] = None
    resolutions: List[EntryResolution] = Field(default_factory=list)
    itinerary: Optional[Itinerary] = None

    model_config = ConfigDict(extra="forbid")


__all__ = [
    "ActivityEntry",
    "Area",
    "Candidate",
    "CityConfig",
    "CrowdLevels",
    "DroppedEntry",
    "EntryKind",
    "EntryResolution",
    "ErrorName",
    "ForecastPoint",
    "Itinerary",
    "LatLng",
    "MODE_PRIORITY",
    "ParsedRequest",
    "PlanContext",
    "ResolvedActivity",
    "State",
    "TransitDetails",
    "TransportMode",
    "TravelEstimate",
    "Venue",
    "VenueQuery",
    "VenueSearchResult",
    "WeatherCondition",
    "WeatherVerdict",
]
