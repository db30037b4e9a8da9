"""Merge resolved entries into a single travel-aware timeline.

Every entry moves through ``EntryState``::

    UNRESOLVED -> LOCATION_RESOLVED -> VENUE_SELECTED -> WEATHER_CHECKED -> PLACED
                                                                        \\-> DROPPED

Fixed entries are placed first in time order and become anchors. Flexible
entries are assigned to the gap before, between or after the anchors and
ordered inside each gap with a greedy nearest-neighbor walk. Candidates are
tried in rank order with weather-unsuitable outdoor venues demoted; the first
one that fits the gap, including travel to the next anchor, is placed.
Entries whose candidates all fail are dropped with ``PlacementConflict``.

The timeline is an immutable tuple. Every insertion builds a new tuple and
re-checks ``start[i + 1] >= end[i] + travel(area[i], area[i + 1])``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar
from zoneinfo import ZoneInfo

from dayplanner.core.activities import search_keywords
from dayplanner.core.errors import PlacementConflict
from dayplanner.core.schemas import (
    ActivityEntry,
    Area,
    Candidate,
    CityConfig,
    DroppedEntry,
    EntryKind,
    EntryResolution,
    ErrorName,
    Itinerary,
    ParsedRequest,
    ResolvedActivity,
    TransportMode,
    Venue,
    WeatherVerdict,
)
from dayplanner.core.travel import TravelEstimator
from dayplanner.core.weather import WeatherSuitabilityFilter

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_FIXED_MINUTES = 60
DEFAULT_FLEXIBLE_MINUTES = 90
MIN_SHORTENED_MINUTES = 30
GAP_FILL_MIN_MINUTES = 150
DAY_START = time(9, 0)
DAY_END = time(22, 0)

PERIOD_WINDOWS: Dict[str, Tuple[time, time]] = {
    "morning": (time(6, 0), time(12, 0)),
    "lunchtime": (time(12, 0), time(14, 0)),
    "afternoon": (time(12, 0), time(17, 0)),
    "evening": (time(17, 0), time(21, 0)),
    "night": (time(21, 0), time(23, 59)),
}
_PERIOD_WORDS = (
    ("lunchtime", "lunchtime"),
    ("morning", "morning"),
    ("afternoon", "afternoon"),
    ("evening", "evening"),
    ("tonight", "evening"),
    ("night", "night"),
)
_BACK_REFERENCES = ("that", "then", "it", "this")


class EntryState(str, Enum):
    UNRESOLVED = "unresolved"
    LOCATION_RESOLVED = "location_resolved"
    VENUE_SELECTED = "venue_selected"
    WEATHER_CHECKED = "weather_checked"
    PLACED = "placed"
    DROPPED = "dropped"


_TRANSITIONS: Dict[EntryState, Tuple[EntryState, ...]] = {
    EntryState.UNRESOLVED: (EntryState.LOCATION_RESOLVED, EntryState.DROPPED),
    EntryState.LOCATION_RESOLVED: (EntryState.VENUE_SELECTED, EntryState.DROPPED),
    EntryState.VENUE_SELECTED: (EntryState.WEATHER_CHECKED, EntryState.DROPPED),
    EntryState.WEATHER_CHECKED: (EntryState.PLACED, EntryState.DROPPED),
    EntryState.PLACED: (),
    EntryState.DROPPED: (),
}


@dataclass(slots=True)
class EntrySlot:
    """Mutable bookkeeping for one entry while the timeline is built."""

    index: int
    resolution: EntryResolution
    state: EntryState = EntryState.UNRESOLVED
    dropped: Optional[DroppedEntry] = None
    history: List[EntryState] = field(default_factory=list)

    @property
    def entry(self) -> ActivityEntry:
        return self.resolution.entry

    def advance(self, state: EntryState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal transition {self.state.value} -> {state.value} for '{self.entry.activity}'")
        self.history.append(self.state)
        self.state = state

    def drop(self, error: ErrorName, reason: str) -> None:
        self.advance(EntryState.DROPPED)
        self.dropped = DroppedEntry(entry=self.entry, reason=reason, error=error)
        logger.warning(f"Dropped '{self.entry.activity}': {reason}")


@dataclass(frozen=True, slots=True)
class Placement:
    slot_index: int
    entry: ActivityEntry
    area: Optional[Area]
    venue: Venue
    start: datetime
    end: datetime
    weather: Optional[WeatherVerdict] = None


@dataclass(frozen=True, slots=True)
class Gap:
    start: datetime
    end: datetime
    from_area: Optional[Area]
    next_anchor: Optional[Placement] = None
    opens_day: bool = False


@dataclass(frozen=True, slots=True)
class DayWindow:
    """The schedulable part of the plan date in the city's timezone."""

    plan_date: date
    tz: tzinfo
    start: datetime
    end: datetime

    @classmethod
    def for_date(
        cls,
        plan_date: date,
        timezone: str,
        start_time: Optional[str] = None,
        *,
        day_start: time = DAY_START,
        day_end: time = DAY_END,
    ) -> "DayWindow":
        tz = ZoneInfo(timezone)
        opening = _parse_hhmm(start_time) if start_time else day_start
        return cls(
            plan_date=plan_date,
            tz=tz,
            start=datetime.combine(plan_date, opening, tzinfo=tz),
            end=datetime.combine(plan_date, day_end, tzinfo=tz),
        )

    def at(self, hhmm: str) -> datetime:
        return datetime.combine(self.plan_date, _parse_hhmm(hhmm), tzinfo=self.tz)

    def at_time(self, value: time) -> datetime:
        return datetime.combine(self.plan_date, value, tzinfo=self.tz)

    def covering(self, start: datetime, end: datetime) -> "DayWindow":
        """Widen the window so that ``[start, end]`` fits inside it."""

        return replace(self, start=min(self.start, start), end=max(self.end, end))


def _parse_hhmm(value: str) -> time:
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


def duration_for(entry: ActivityEntry) -> timedelta:
    if entry.duration_minutes:
        return timedelta(minutes=entry.duration_minutes)
    return timedelta(minutes=DEFAULT_FIXED_MINUTES if entry.is_fixed else DEFAULT_FLEXIBLE_MINUTES)


def period_of(descriptor: Optional[str]) -> Optional[str]:
    text = (descriptor or "").lower()
    for word, period in _PERIOD_WORDS:
        if word in text:
            return period
    return None


def nearest_neighbor_order(
    start: object,
    items: Sequence[T],
    travel_minutes: Callable[[object, object], int],
    *,
    location: Callable[[T], object] = lambda item: item,
) -> List[T]:
    """Greedy nearest-neighbor route from ``start``; ties keep input order.

    Not a full route optimisation: each step picks the closest remaining
    item from the current position.
    """

    remaining = list(items)
    ordered: List[T] = []
    current = start
    while remaining:
        best_index = min(
            range(len(remaining)),
            key=lambda index: (travel_minutes(current, location(remaining[index])), index),
        )
        chosen = remaining.pop(best_index)
        ordered.append(chosen)
        current = location(chosen)
    return ordered


def assign_gap(
    entry: ActivityEntry,
    fixed_entries: Sequence[ActivityEntry],
    anchor_starts: Sequence[datetime],
    gaps: Sequence[Tuple[datetime, datetime]],
    window: DayWindow,
) -> int:
    """Index of the gap a flexible entry belongs to.

    Gap ``k`` lies between anchor ``k - 1`` and anchor ``k``. Rules, in order:
    an explicit ``anchor_sequence``; a period word (the gap overlapping that
    period most); "before ..." (the gap before the referenced fixed entry);
    otherwise the gap after the nearest preceding fixed entry by mention.
    """

    def after(reference: ActivityEntry) -> int:
        moment = window.at(reference.time)
        return sum(1 for start in anchor_starts if start <= moment)

    def before(reference: ActivityEntry) -> int:
        moment = window.at(reference.time)
        return sum(1 for start in anchor_starts if start < moment)

    by_sequence = sorted(fixed_entries, key=lambda item: item.sequence)
    preceding = [item for item in by_sequence if item.sequence < entry.sequence]
    following = [item for item in by_sequence if item.sequence > entry.sequence]

    if entry.anchor_sequence is not None:
        if entry.anchor_sequence < 0:
            return 0
        for item in by_sequence:
            if item.sequence == entry.anchor_sequence:
                return after(item)

    descriptor = (entry.time or "").lower().strip()
    period = period_of(descriptor)
    if period:
        low, high = PERIOD_WINDOWS[period]
        period_start, period_end = window.at_time(low), window.at_time(high)
        overlaps = [
            max(timedelta(0), min(gap_end, period_end) - max(gap_start, period_start))
            for gap_start, gap_end in gaps
        ]
        if overlaps and max(overlaps) > timedelta(0):
            return overlaps.index(max(overlaps))

    words = descriptor.split()
    if words and words[0] in ("before", "after"):
        target = words[1] if len(words) > 1 else None
        named = None
        if target and target not in _BACK_REFERENCES:
            named = next((item for item in by_sequence if target in item.activity.lower()), None)
        if words[0] == "before":
            if named is not None:
                return before(named)
            if target in _BACK_REFERENCES and preceding:
                return before(preceding[-1])
            if following:
                return before(following[0])
            return len(anchor_starts)
        if named is not None:
            return after(named)

    if not preceding:
        return 0
    return after(preceding[-1])


def suggest_gap_fillers(parsed: ParsedRequest, window: DayWindow, city: CityConfig) -> List[ActivityEntry]:
    """Suggested flexible entries for long free windows between fixed entries."""

    fixed = sorted(parsed.fixed_time_entries, key=lambda item: (item.time, item.sequence))
    if parsed.is_empty:
        return []
    intervals = [(window.at(item.time), window.at(item.time) + duration_for(item)) for item in fixed]
    edges = [window.start] + [end for _, end in intervals]
    ends = [start for start, _ in intervals] + [window.end]
    gaps = list(zip(edges, ends))
    anchor_starts = [start for start, _ in intervals]

    occupied = {
        assign_gap(entry, fixed, anchor_starts, gaps, window) for entry in parsed.flexible_time_entries
    }
    next_sequence = len(parsed.entries)
    suggestions: List[ActivityEntry] = []
    for index, (gap_start, gap_end) in enumerate(gaps):
        if index in occupied or gap_end - gap_start < timedelta(minutes=GAP_FILL_MIN_MINUTES):
            continue
        activity, search_type = _suggestion_for(gap_start, gap_end, window)
        suggestions.append(
            ActivityEntry(
                activity=activity,
                kind=EntryKind.FLEXIBLE,
                sequence=next_sequence,
                search_type=search_type,
                keywords=search_keywords(search_type, city),
                anchor_sequence=fixed[index - 1].sequence if index > 0 else -1,
                suggested=True,
            )
        )
        next_sequence += 1
    if suggestions:
        logger.info(f"Suggested {len(suggestions)} gap fillers: {[item.activity for item in suggestions]}")
    return suggestions


def _suggestion_for(start: datetime, end: datetime, window: DayWindow) -> Tuple[str, str]:
    if start <= window.at_time(time(12, 0)) and end >= window.at_time(time(14, 0)):
        return "lunch", "restaurant"
    middle = start + (end - start) / 2
    if middle.hour < 12:
        return "coffee", "cafe"
    if middle.hour < 17:
        return "museum", "museum"
    return "drinks", "bar"


def build_title(activities: Sequence[ResolvedActivity], city_name: str, query: str = "") -> str:
    names: List[str] = []
    for activity in activities:
        name = activity.entry.activity.strip()
        if name and name.lower() not in (existing.lower() for existing in names):
            names.append(name[0].upper() + name[1:])
    if names:
        return f"{', '.join(names[:3])} in {city_name}"
    excerpt = " ".join(query.split())[:40].rstrip()
    return f"Trip: {excerpt} in {city_name}" if excerpt else f"Day in {city_name}"


class ScheduleAssembler:
    """Pure placement engine; all external data arrives in ``EntryResolution``."""

    def __init__(
        self,
        travel_estimator: TravelEstimator,
        weather_filter: Optional[WeatherSuitabilityFilter] = None,
        *,
        preferred_mode: Optional[TransportMode] = None,
    ) -> None:
        self.travel_estimator = travel_estimator
        self.weather_filter = weather_filter or WeatherSuitabilityFilter()
        self.preferred_mode = preferred_mode

    def travel_minutes(self, origin: Optional[Area], destination: Optional[Area]) -> int:
        return self.travel_estimator.travel_minutes(origin, destination, self.preferred_mode)

    # -- timeline -----------------------------------------------------------

    def check_timeline(self, timeline: Sequence[Placement]) -> None:
        """Raise ``PlacementConflict`` when ordering or travel buffers break."""

        for previous, current in zip(timeline, timeline[1:]):
            required = previous.end + timedelta(minutes=self.travel_minutes(previous.area, current.area))
            if current.start < previous.start or current.start < required:
                raise PlacementConflict(
                    f"'{current.entry.activity}' at {current.start:%H:%M} overlaps "
                    f"'{previous.entry.activity}' ending {previous.end:%H:%M} plus travel"
                )

    def insert(self, timeline: Tuple[Placement, ...], placement: Placement) -> Tuple[Placement, ...]:
        updated = tuple(sorted((*timeline, placement), key=lambda item: (item.start, item.entry.sequence)))
        self.check_timeline(updated)
        return updated

    # -- assembly -----------------------------------------------------------

    def assemble(
        self,
        resolutions: Sequence[EntryResolution],
        window: DayWindow,
        *,
        city: CityConfig,
        query: str = "",
        start_area: Optional[Area] = None,
    ) -> Itinerary:
        slots = [EntrySlot(index=index, resolution=resolution) for index, resolution in enumerate(resolutions)]
        for slot in slots:
            self._enter_resolution(slot)

        fixed_slots = sorted(
            (slot for slot in slots if slot.entry.is_fixed and slot.state is EntryState.VENUE_SELECTED),
            key=lambda slot: (slot.entry.time, slot.entry.sequence),
        )
        for slot in fixed_slots:
            start = window.at(slot.entry.time)
            window = window.covering(start, start + duration_for(slot.entry))

        timeline = self._place_fixed(fixed_slots, window)
        flexible_slots = [
            slot for slot in slots if not slot.entry.is_fixed and slot.state is EntryState.VENUE_SELECTED
        ]
        fixed_entries = [slot.entry for slot in slots if slot.entry.is_fixed]
        timeline = self._place_flexible(flexible_slots, fixed_entries, timeline, window, start_area)

        activities = self._finalize(timeline, start_area)
        dropped = [slot.dropped for slot in sorted(slots, key=lambda s: s.entry.sequence) if slot.dropped]
        logger.info(f"Assembled {len(activities)} activities, dropped {len(dropped)}")
        return Itinerary(
            title=build_title(activities, city.name, query),
            city_slug=city.slug,
            plan_date=window.plan_date,
            activities=activities,
            dropped=dropped,
        )

    def _enter_resolution(self, slot: EntrySlot) -> None:
        resolution = slot.resolution
        if not resolution.candidates:
            slot.drop(
                resolution.miss_error or "NoResultsError",
                resolution.miss_reason or f"No venue found for '{slot.entry.activity}'",
            )
            return
        slot.advance(EntryState.LOCATION_RESOLVED)
        slot.advance(EntryState.VENUE_SELECTED)

    def _candidate_area(self, slot: EntrySlot, candidate: Candidate) -> Optional[Area]:
        return candidate.area or slot.resolution.area

    def _trials(
        self,
        slot: EntrySlot,
        start_for: Callable[[Candidate], datetime],
    ) -> List[Tuple[Candidate, WeatherVerdict, datetime]]:
        """Candidates with their start and verdict, unsuitable ones demoted."""

        trials = []
        for candidate in sorted(slot.resolution.candidates, key=lambda item: item.rank):
            start = start_for(candidate)
            verdict = self.weather_filter.check(candidate.venue, candidate.forecast, start)
            trials.append((candidate, verdict, start))
        slot.advance(EntryState.WEATHER_CHECKED)
        demoted = [trial for trial in trials if not trial[1].suitable]
        if demoted:
            logger.info(f"Demoted {len(demoted)} outdoor venues for '{slot.entry.activity}' due to weather")
        return [trial for trial in trials if trial[1].suitable] + demoted

    def _place_fixed(self, slots: Sequence[EntrySlot], window: DayWindow) -> Tuple[Placement, ...]:
        timeline: Tuple[Placement, ...] = ()
        for slot in slots:
            start = window.at(slot.entry.time)
            end = start + duration_for(slot.entry)
            conflict_with = None
            for candidate, verdict, _ in self._trials(slot, lambda _: start):
                area = self._candidate_area(slot, candidate)
                base = timeline
                shortened = False
                previous = timeline[-1] if timeline else None
                if previous is not None:
                    latest_end = start - timedelta(minutes=self.travel_minutes(previous.area, area))
                    if previous.end > latest_end:
                        if latest_end - previous.start < timedelta(minutes=MIN_SHORTENED_MINUTES):
                            conflict_with = previous
                            continue
                        base = timeline[:-1] + (replace(previous, end=latest_end),)
                        shortened = True
                placement = Placement(
                    slot_index=slot.index,
                    entry=slot.entry,
                    area=area,
                    venue=candidate.venue,
                    start=start,
                    end=end,
                    weather=verdict,
                )
                try:
                    timeline = self.insert(base, placement)
                except PlacementConflict:
                    conflict_with = previous
                    continue
                if shortened:
                    logger.info(
                        f"Shortened '{previous.entry.activity}' to end at {base[-1].end:%H:%M} "
                        f"to reach '{slot.entry.activity}'"
                    )
                slot.advance(EntryState.PLACED)
                break
            else:
                other = f"'{conflict_with.entry.activity}'" if conflict_with else "the schedule"
                slot.drop("PlacementConflict", f"Fixed time {slot.entry.time} conflicts with {other}")
        return timeline

    def _gaps(
        self,
        anchors: Sequence[Placement],
        window: DayWindow,
        start_area: Optional[Area],
    ) -> List[Gap]:
        gaps = [
            Gap(
                start=window.start,
                end=anchors[0].start if anchors else window.end,
                from_area=start_area,
                next_anchor=anchors[0] if anchors else None,
                opens_day=True,
            )
        ]
        for index, anchor in enumerate(anchors):
            following = anchors[index + 1] if index + 1 < len(anchors) else None
            gaps.append(
                Gap(
                    start=anchor.end,
                    end=following.start if following else window.end,
                    from_area=anchor.area,
                    next_anchor=following,
                )
            )
        return gaps

    def _place_flexible(
        self,
        slots: Sequence[EntrySlot],
        fixed_entries: Sequence[ActivityEntry],
        timeline: Tuple[Placement, ...],
        window: DayWindow,
        start_area: Optional[Area],
    ) -> Tuple[Placement, ...]:
        anchors = list(timeline)
        gaps = self._gaps(anchors, window, start_area)
        bounds = [(gap.start, gap.end) for gap in gaps]
        anchor_starts = [anchor.start for anchor in anchors]

        members: Dict[int, List[EntrySlot]] = {}
        for slot in sorted(slots, key=lambda item: item.entry.sequence):
            index = assign_gap(slot.entry, fixed_entries, anchor_starts, bounds, window)
            members.setdefault(index, []).append(slot)

        for index, gap in enumerate(gaps):
            if index not in members:
                continue
            ordered = nearest_neighbor_order(
                gap.from_area,
                members[index],
                lambda origin, target: self.travel_minutes(origin, target),
                location=self._primary_area,
            )
            logger.debug(f"Gap {index} order: {[slot.entry.activity for slot in ordered]}")
            cursor, cursor_area = gap.start, gap.from_area
            travel_from_cursor = not (gap.opens_day and gap.from_area is None)
            for slot in ordered:
                placed = self._place_in_gap(slot, gap, window, timeline, cursor, cursor_area, travel_from_cursor)
                if placed is None:
                    continue
                timeline, placement = placed
                cursor, cursor_area, travel_from_cursor = placement.end, placement.area, True
        return timeline

    def _primary_area(self, slot: EntrySlot) -> Optional[Area]:
        first = min(slot.resolution.candidates, key=lambda item: item.rank)
        return self._candidate_area(slot, first)

    def _place_in_gap(
        self,
        slot: EntrySlot,
        gap: Gap,
        window: DayWindow,
        timeline: Tuple[Placement, ...],
        cursor: datetime,
        cursor_area: Optional[Area],
        travel_from_cursor: bool,
    ) -> Optional[Tuple[Tuple[Placement, ...], Placement]]:
        duration = duration_for(slot.entry)

        def start_for(candidate: Candidate) -> datetime:
            if not travel_from_cursor:
                return cursor
            area = self._candidate_area(slot, candidate)
            return cursor + timedelta(minutes=self.travel_minutes(cursor_area, area))

        for candidate, verdict, start in self._trials(slot, start_for):
            area = self._candidate_area(slot, candidate)
            end = start + duration
            if gap.next_anchor is not None:
                limit = gap.next_anchor.start - timedelta(
                    minutes=self.travel_minutes(area, gap.next_anchor.area)
                )
            else:
                limit = window.end
            if end > limit:
                continue
            placement = Placement(
                slot_index=slot.index,
                entry=slot.entry,
                area=area,
                venue=candidate.venue,
                start=start,
                end=end,
                weather=verdict,
            )
            try:
                updated = self.insert(timeline, placement)
            except PlacementConflict:
                continue
            slot.advance(EntryState.PLACED)
            return updated, placement

        slot.drop(
            "PlacementConflict",
            f"No candidate for '{slot.entry.activity}' fits between {gap.start:%H:%M} and {gap.end:%H:%M}",
        )
        return None

    def _finalize(self, timeline: Sequence[Placement], start_area: Optional[Area]) -> List[ResolvedActivity]:
        activities: List[ResolvedActivity] = []
        previous_area = start_area
        for position, placement in enumerate(timeline):
            minutes, mode = 0, None
            if position > 0 or start_area is not None:
                estimate = self.travel_estimator.estimate(previous_area, placement.area, self.preferred_mode)
                minutes, mode = estimate.travel_minutes, estimate.recommended_mode
            activities.append(
                ResolvedActivity(
                    entry=placement.entry,
                    area=placement.area,
                    venue=placement.venue,
                    start_time=placement.start,
                    end_time=placement.end,
                    travel_minutes_from_previous=minutes,
                    travel_mode=mode,
                    weather=placement.weather,
                )
            )
            previous_area = placement.area
        return activities
