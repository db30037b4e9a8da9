"""LangGraph nodes for the planning workflow.

``parse_request`` turns the query into a ``ParsedRequest``. ``resolve_entries``
finds areas, venues and forecasts for every entry concurrently. Fixed entries
run as tasks; a flexible entry whose seed area is unknown waits only on its own
anchor's task. Every external call runs against the single deadline stored in
the state, so one slow provider only costs the entries that waited on it. ``assemble_schedule``
runs the pure ``ScheduleAssembler``.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Dict, List, Optional, Protocol, Sequence, TypeVar

import httpx
from langchain_core.messages import AIMessage
from langgraph.graph import END
from langgraph.runtime import Runtime

from dayplanner.core.activities import is_meeting
from dayplanner.core.assembler import (
    DayWindow,
    ScheduleAssembler,
    duration_for,
    period_of,
    suggest_gap_fillers,
)
from dayplanner.core.errors import NoResultsError, ParseError, ProviderError, ProviderTimeout, ResolutionMiss
from dayplanner.core.location import is_nearby_reference
from dayplanner.core.parser import LLMParseService, RequestParser
from dayplanner.core.ranking import TimeOfDay, is_weekend, time_of_day_for
from dayplanner.core.schemas import (
    ActivityEntry,
    Area,
    Candidate,
    EntryResolution,
    ErrorName,
    ForecastPoint,
    ParsedRequest,
    PlanContext,
    State,
    Venue,
    VenueQuery,
    VenueSearchResult,
)
from dayplanner.core.toolkit import CityToolkit, get_city_toolkit
from dayplanner.core.weather import WeatherSuitabilityFilter, is_outdoor_venue

logger = logging.getLogger(__name__)

T = TypeVar("T")

AREA_RADIUS_M = 5000
CITY_RADIUS_M = 25000
MAX_CANDIDATE_AREAS = 3
MAX_CANDIDATES = 6
PERIOD_TIME_OF_DAY: Dict[str, TimeOfDay] = {
    "morning": "morning",
    "lunchtime": "afternoon",
    "afternoon": "afternoon",
    "evening": "evening",
    "night": "night",
}


class VenueSearch(Protocol):
    async def search(self, query: VenueQuery, *, city_names: Sequence[str] = ()) -> VenueSearchResult:
        ...


class ForecastProvider(Protocol):
    async def forecast(self, lat: float, lng: float) -> Sequence[ForecastPoint]:
        ...


async def with_deadline(awaitable: Awaitable[T], deadline: Optional[float], label: str) -> T:
    """Await ``awaitable`` until the monotonic ``deadline``; raise ``ProviderTimeout`` after."""

    timeout = None
    if deadline is not None:
        timeout = deadline - time.monotonic()
        if timeout <= 0:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise ProviderTimeout(f"{label}: planning deadline exceeded")
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        raise ProviderTimeout(f"{label} timed out") from exc


def _error_name(exc: ResolutionMiss) -> ErrorName:
    if isinstance(exc, ProviderTimeout):
        return "ProviderTimeout"
    if isinstance(exc, NoResultsError):
        return "NoResultsError"
    if isinstance(exc, ProviderError):
        return "ProviderError"
    return "ResolutionMiss"


def explicit_areas(entries: Sequence[ActivityEntry], toolkit: CityToolkit) -> Dict[int, Area]:
    """Areas named directly in the entries' location mentions, keyed by sequence."""

    areas: Dict[int, Area] = {}
    for entry in entries:
        if not entry.location or is_nearby_reference(entry.location):
            continue
        area = toolkit.resolver.resolve(entry.location)
        if area is not None:
            areas[entry.sequence] = area
        else:
            logger.info(f"Location '{entry.location}' not recognised; using city-wide search")
    return areas


def build_venue_query(entry: ActivityEntry, area: Optional[Area], toolkit: CityToolkit) -> VenueQuery:
    city = toolkit.city
    subject = entry.venue_preference or entry.activity
    where = f"{area.name}, {city.name}" if area else city.name
    return VenueQuery(
        query=f"{subject} in {where}",
        type=entry.search_type,
        keywords=entry.keywords,
        location_bias=area.coordinates if area else city.default_location,
        radius_m=AREA_RADIUS_M if area else CITY_RADIUS_M,
        preference_text=entry.venue_preference,
        city_slug=city.slug,
    )


def placeholder_venue(entry: ActivityEntry, area: Optional[Area], toolkit: CityToolkit) -> Venue:
    where = area.name if area else toolkit.city.name
    return Venue(
        name=f"{entry.activity.capitalize()} ({entry.location or where})",
        address=where,
        location=area.coordinates if area else toolkit.city.default_location,
        is_placeholder=True,
    )


class EntryResolver:
    """Resolves a single request's entries against the external providers."""

    def __init__(
        self,
        toolkit: CityToolkit,
        window: DayWindow,
        *,
        search: Optional[VenueSearch],
        weather: Optional[ForecastProvider],
        deadline: Optional[float],
    ) -> None:
        self.toolkit = toolkit
        self.window = window
        self.search = search
        self.weather = weather
        self.deadline = deadline

    async def resolve(self, entry: ActivityEntry, areas: Sequence[Optional[Area]]) -> EntryResolution:
        """Candidates for ``entry`` across ``areas``, best area first.

        Misses in one area fall through to the next; only an entry with no
        candidate at all reports a miss.
        """

        areas = list(areas) or [None]
        if is_meeting(entry.activity):
            venue = placeholder_venue(entry, areas[0], self.toolkit)
            return EntryResolution(entry=entry, area=areas[0], candidates=[Candidate(area=areas[0], venue=venue, rank=0)])

        if self.search is None:
            return EntryResolution(
                entry=entry,
                area=areas[0],
                miss_reason="Venue search is not configured",
                miss_error="ProviderError",
            )

        candidates: List[Candidate] = []
        miss: Optional[ResolutionMiss] = None
        seen = set()
        for area in areas:
            query = build_venue_query(entry, area, self.toolkit)
            try:
                result = await with_deadline(
                    self.search.search(query, city_names=(self.toolkit.city.name, *self.toolkit.city.city_aliases)),
                    self.deadline,
                    f"Venue search for '{entry.activity}'",
                )
            except ResolutionMiss as exc:
                logger.warning(f"Venue search miss for '{entry.activity}' in {area.name if area else 'city'}: {exc}")
                miss = exc
                if isinstance(exc, ProviderTimeout):
                    break
                continue

            for venue in result.ranked():
                key = venue.place_id or (venue.name, venue.address)
                if key in seen:
                    continue
                seen.add(key)
                venue_area = area or self.toolkit.resolver.area_for_venue(venue.address, venue.location)
                candidates.append(Candidate(area=venue_area, venue=venue, rank=len(candidates)))
            if len(candidates) >= MAX_CANDIDATES:
                break

        if not candidates:
            error = miss or NoResultsError(f"No venue found for '{entry.activity}'")
            return EntryResolution(entry=entry, area=areas[0], miss_reason=str(error), miss_error=_error_name(error))

        candidates = await self._attach_forecasts(candidates[:MAX_CANDIDATES])
        return EntryResolution(entry=entry, area=areas[0] or candidates[0].area, candidates=candidates)

    async def _attach_forecasts(self, candidates: List[Candidate]) -> List[Candidate]:
        if self.weather is None:
            return candidates
        enriched = []
        for candidate in candidates:
            if not is_outdoor_venue(candidate.venue):
                enriched.append(candidate)
                continue
            location = candidate.venue.location
            try:
                forecast = await with_deadline(
                    self.weather.forecast(location.lat, location.lng),
                    self.deadline,
                    f"Forecast for '{candidate.venue.name}'",
                )
            except ResolutionMiss as exc:
                logger.warning(f"No forecast for '{candidate.venue.name}': {exc}")
                enriched.append(candidate)
                continue
            enriched.append(candidate.model_copy(update={"forecast": tuple(forecast)}))
        return enriched

    def time_of_day(self, entry: ActivityEntry, anchor: Optional[ActivityEntry]) -> TimeOfDay:
        period = period_of(entry.time)
        if period:
            return PERIOD_TIME_OF_DAY[period]
        if anchor is not None and anchor.time:
            return time_of_day_for(self.window.at(anchor.time) + duration_for(anchor))
        return time_of_day_for(self.window.start)

    def candidate_areas(self, entry: ActivityEntry, seed: Optional[Area], anchor: Optional[ActivityEntry]) -> List[Optional[Area]]:
        """Top ranked areas for a flexible entry, seeded with ``seed`` for proximity."""

        preferences = [*entry.requirements]
        if entry.venue_preference:
            preferences.append(entry.venue_preference)
        ranked = self.toolkit.ranker.rank(
            entry.activity,
            preferences,
            seed,
            self.time_of_day(entry, anchor),
            weekend=is_weekend(self.window.plan_date),
        )
        areas: List[Optional[Area]] = [item.area for item in ranked[:MAX_CANDIDATE_AREAS]]
        if not areas:
            areas = [seed]
        logger.debug(f"Candidate areas for '{entry.activity}': {[a.name if a else None for a in areas]}")
        return areas


def _preceding(entries: Sequence[ActivityEntry], sequence: int) -> Optional[ActivityEntry]:
    earlier = [entry for entry in entries if entry.sequence < sequence]
    return max(earlier, key=lambda entry: entry.sequence) if earlier else None


def _resolved_area(resolution: EntryResolution) -> Optional[Area]:
    return resolution.area or (resolution.candidates[0].area if resolution.candidates else None)


def _nearby_area(entry: ActivityEntry, entries: Sequence[ActivityEntry], known: Dict[int, Area]) -> Optional[Area]:
    """Area of the closest earlier entry with a known area, for "nearby" mentions."""

    if not is_nearby_reference(entry.location):
        return None
    previous = _preceding([item for item in entries if item.sequence in known], entry.sequence)
    return known[previous.sequence] if previous else None


def make_parse_node(llm_service: Optional[LLMParseService] = None):
    """Return the request parsing node; without an LLM the rule parser is used."""

    async def node(state: State, runtime: Runtime[PlanContext]) -> Dict[str, Any]:
        context = runtime.context
        toolkit = get_city_toolkit(context.city_slug)
        parser = RequestParser(toolkit.city, toolkit.resolver, llm_service)
        try:
            parsed = await with_deadline(
                parser.parse(context.query, context.history), state.deadline, "Request parsing"
            )
        except (ParseError, ProviderTimeout) as exc:
            logger.warning(f"Could not parse request: {exc}")
            return {
                "messages": [AIMessage(content=f"Could not understand the request: {exc}", name="parse_request")],
                "parsed": ParsedRequest(),
                "parse_error": str(exc),
            }

        return {
            "messages": [
                AIMessage(
                    content=(
                        f"Parsed {len(parsed.fixed_time_entries)} fixed and "
                        f"{len(parsed.flexible_time_entries)} flexible activities"
                    ),
                    name="parse_request",
                )
            ],
            "parsed": parsed,
        }

    return node


def route_after_parse(state: State) -> str:
    if state.parse_error or state.parsed is None or state.parsed.is_empty:
        return END
    return "resolve_entries"


def make_resolve_node(
    search: Optional[VenueSearch] = None,
    weather: Optional[ForecastProvider] = None,
):
    """Return the node resolving areas, venues and forecasts for every entry."""

    async def node(state: State, runtime: Runtime[PlanContext]) -> Dict[str, Any]:
        context = runtime.context
        parsed = state.parsed or ParsedRequest()
        toolkit = get_city_toolkit(context.city_slug)
        window = DayWindow.for_date(context.plan_date, toolkit.city.timezone, context.start_time)
        resolver = EntryResolver(toolkit, window, search=search, weather=weather, deadline=state.deadline)

        entries = parsed.entries
        if context.enable_gap_filling:
            entries = [*entries, *suggest_gap_fillers(parsed, window, toolkit.city)]
        fixed = [entry for entry in entries if entry.is_fixed]
        flexible = [entry for entry in entries if not entry.is_fixed]
        known = explicit_areas(entries, toolkit)

        start = time.monotonic()
        fixed_tasks: Dict[int, asyncio.Task] = {
            entry.sequence: asyncio.create_task(
                resolver.resolve(entry, [known.get(entry.sequence) or _nearby_area(entry, entries, known)])
            )
            for entry in fixed
        }
        start_area = toolkit.resolver.resolve(parsed.start_location) if parsed.start_location else None

        async def area_of(entry: ActivityEntry) -> Optional[Area]:
            # Only waits on a fixed entry's search when its area was not named
            if entry.sequence in known:
                return known[entry.sequence]
            task = fixed_tasks.get(entry.sequence)
            return _resolved_area(await task) if task is not None else None

        async def seed_for(entry: ActivityEntry, anchor: Optional[ActivityEntry]) -> Optional[Area]:
            if is_nearby_reference(entry.location):
                for previous in sorted(entries, key=lambda item: item.sequence, reverse=True):
                    if previous.sequence < entry.sequence:
                        area = await area_of(previous)
                        if area is not None:
                            return area
                return None
            return await area_of(anchor) if anchor else None

        async def resolve_flexible(entry: ActivityEntry) -> EntryResolution:
            explicit = known.get(entry.sequence)
            if explicit is not None:
                return await resolver.resolve(entry, [explicit])
            if entry.anchor_sequence is not None:
                # -1 pins the entry to the start of the day
                anchor = next((item for item in fixed if item.sequence == entry.anchor_sequence), None)
            else:
                anchor = _preceding(fixed, entry.sequence)
            seed = await seed_for(entry, anchor) or start_area
            return await resolver.resolve(entry, resolver.candidate_areas(entry, seed, anchor))

        resolutions = list(
            await asyncio.gather(*fixed_tasks.values(), *(resolve_flexible(entry) for entry in flexible))
        )
        misses = [item for item in resolutions if not item.candidates]
        logger.info(
            f"Resolved {len(resolutions) - len(misses)}/{len(resolutions)} entries "
            f"in {time.monotonic() - start:.2f}s"
        )
        return {
            "messages": [
                AIMessage(
                    content=f"Found venues for {len(resolutions) - len(misses)} of {len(resolutions)} activities",
                    name="resolve_entries",
                )
            ],
            "resolutions": resolutions,
        }

    return node


def make_assemble_node(weather_filter: Optional[WeatherSuitabilityFilter] = None):
    """Return the node that assembles the final itinerary."""

    async def node(state: State, runtime: Runtime[PlanContext]) -> Dict[str, Any]:
        context = runtime.context
        parsed = state.parsed or ParsedRequest()
        toolkit = get_city_toolkit(context.city_slug)
        window = DayWindow.for_date(context.plan_date, toolkit.city.timezone, context.start_time)
        assembler = ScheduleAssembler(
            toolkit.estimator,
            weather_filter,
            preferred_mode=context.preferred_mode,
        )
        start_area = toolkit.resolver.resolve(parsed.start_location) if parsed.start_location else None
        itinerary = assembler.assemble(
            state.resolutions,
            window,
            city=toolkit.city,
            query=context.query,
            start_area=start_area,
        )
        return {
            "messages": [
                AIMessage(
                    content=(
                        f"Scheduled {len(itinerary.activities)} activities"
                        + (f", dropped {len(itinerary.dropped)}" if itinerary.dropped else "")
                    ),
                    name="assemble_schedule",
                )
            ],
            "itinerary": itinerary,
        }

    return node
