"""Timeline assembly: anchors, gaps, weather demotion and conflicts."""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Sequence

import pytest

from dayplanner.core.assembler import (
    DayWindow,
    EntrySlot,
    EntryState,
    ScheduleAssembler,
    assign_gap,
    build_title,
    nearest_neighbor_order,
    period_of,
    suggest_gap_fillers,
)
from dayplanner.core.schemas import (
    ActivityEntry,
    Candidate,
    EntryKind,
    EntryResolution,
    ForecastPoint,
    Itinerary,
    ParsedRequest,
    Venue,
)


def _fixed(activity: str, at: str, sequence: int, **kwargs) -> ActivityEntry:
    return ActivityEntry(activity=activity, kind=EntryKind.FIXED, time=at, sequence=sequence, **kwargs)


def _flexible(activity: str, sequence: int, at: Optional[str] = None, **kwargs) -> ActivityEntry:
    return ActivityEntry(activity=activity, kind=EntryKind.FLEXIBLE, time=at, sequence=sequence, **kwargs)


def _resolution(toolkit, entry: ActivityEntry, *venues: Sequence) -> EntryResolution:
    """``venues`` are ``(name, area name)`` or ``(name, area name, categories, forecast)`` tuples."""

    candidates = []
    for rank, row in enumerate(venues):
        name, area_name = row[0], row[1]
        categories = row[2] if len(row) > 2 else ()
        forecast = row[3] if len(row) > 3 else ()
        area = toolkit.knowledge_base.get(area_name)
        candidates.append(
            Candidate(
                area=area,
                venue=Venue(name=name, location=area.coordinates, categories=tuple(categories)),
                rank=rank,
                forecast=tuple(forecast),
            )
        )
    area = candidates[0].area if candidates else None
    return EntryResolution(entry=entry, area=area, candidates=candidates)


@pytest.fixture
def window(tuesday: date) -> DayWindow:
    return DayWindow.for_date(tuesday, "Europe/London")


@pytest.fixture
def assembler(london) -> ScheduleAssembler:
    return ScheduleAssembler(london.estimator)


def _assemble(assembler, london, window, resolutions, **kwargs) -> Itinerary:
    return assembler.assemble(resolutions, window, city=london.city, **kwargs)


def test_day_window_is_local(window: DayWindow) -> None:
    assert window.start.hour == 9
    assert window.end.hour == 22
    assert window.start.utcoffset() == timedelta(hours=1)
    assert window.at("19:00").hour == 19

    early = DayWindow.for_date(window.plan_date, "Europe/London", "07:30")
    assert (early.start.hour, early.start.minute) == (7, 30)


def test_scenario_places_coffee_between_anchors(assembler, london, window) -> None:
    resolutions = [
        _resolution(london, _fixed("lunch", "12:00", 0, location="Mayfair"), ("Scott's", "Mayfair")),
        _resolution(
            london,
            _flexible("coffee", 1, "afterwards", location="nearby", requirements=("quiet",)),
            ("Daunt Cafe", "Marylebone"),
        ),
        _resolution(london, _fixed("drinks", "19:00", 2, location="Chelsea"), ("Bluebird", "Chelsea")),
    ]

    itinerary = _assemble(assembler, london, window, resolutions)

    assert [item.entry.activity for item in itinerary.activities] == ["lunch", "coffee", "drinks"]
    assert not itinerary.dropped
    lunch, coffee, drinks = itinerary.activities
    assert lunch.travel_minutes_from_previous == 0
    assert lunch.travel_mode is None
    assert coffee.start_time >= lunch.end_time + timedelta(minutes=coffee.travel_minutes_from_previous)
    assert coffee.start_time > window.at("13:00")
    assert coffee.end_time + timedelta(minutes=drinks.travel_minutes_from_previous) <= drinks.start_time
    assert coffee.duration_minutes == 90
    assert drinks.start_time == window.at("19:00")
    assert itinerary.title == "Lunch, Coffee, Drinks in London"


def test_start_area_adds_travel_to_first_activity(assembler, london, window) -> None:
    resolutions = [_resolution(london, _fixed("lunch", "12:00", 0), ("Scott's", "Mayfair"))]
    itinerary = _assemble(assembler, london, window, resolutions, start_area=london.knowledge_base.get("soho"))

    (lunch,) = itinerary.activities
    assert lunch.travel_minutes_from_previous == 10
    assert lunch.travel_mode is not None


def test_rain_demotes_outdoor_candidate(assembler, london, window) -> None:
    rain = ForecastPoint(
        timestamp=datetime(2025, 6, 10, 11, 0, tzinfo=timezone.utc),
        temp_c=13.0,
        condition="rain",
    )
    entry = _flexible("park", 0)
    resolution = _resolution(
        london,
        entry,
        ("Hyde Park", "Kensington", ["park"], [rain]),
        ("Natural History Museum", "South Kensington", ["museum"]),
    )

    itinerary = _assemble(assembler, london, window, [resolution])

    (placed,) = itinerary.activities
    assert placed.venue.name == "Natural History Museum"
    assert placed.weather is not None and not placed.weather.is_outdoor


def test_outdoor_venue_kept_when_no_alternative(assembler, london, window) -> None:
    rain = ForecastPoint(timestamp=window.at("09:00"), temp_c=13.0, condition="rain")
    resolution = _resolution(london, _flexible("park", 0), ("Hyde Park", "Kensington", ["park"], [rain]))

    (placed,) = _assemble(assembler, london, window, [resolution]).activities
    assert placed.venue.name == "Hyde Park"
    assert placed.weather.is_outdoor and not placed.weather.suitable


def test_fixed_overlap_shortens_previous_entry(assembler, london, window) -> None:
    resolutions = [
        _resolution(london, _fixed("lunch", "12:00", 0, duration_minutes=120), ("Scott's", "Mayfair")),
        _resolution(london, _fixed("meeting", "13:30", 1), ("Office", "Soho")),
    ]
    itinerary = _assemble(assembler, london, window, resolutions)

    lunch, meeting = itinerary.activities
    assert lunch.end_time == window.at("13:20")
    assert meeting.start_time == window.at("13:30")
    assert not itinerary.dropped


def test_unreachable_fixed_entry_is_dropped(assembler, london, window) -> None:
    resolutions = [
        _resolution(london, _fixed("lunch", "12:00", 0), ("Scott's", "Mayfair")),
        _resolution(london, _fixed("coffee", "12:15", 1), ("Chelsea Cafe", "Chelsea")),
    ]
    itinerary = _assemble(assembler, london, window, resolutions)

    assert [item.entry.activity for item in itinerary.activities] == ["lunch"]
    (dropped,) = itinerary.dropped
    assert dropped.error == "PlacementConflict"
    assert "'lunch'" in dropped.reason


def test_unresolved_entries_keep_their_error(assembler, london, window) -> None:
    missing = EntryResolution(
        entry=_flexible("museum", 1),
        miss_reason="Venue search timed out",
        miss_error="ProviderTimeout",
    )
    resolutions = [_resolution(london, _fixed("lunch", "12:00", 0), ("Scott's", "Mayfair")), missing]

    itinerary = _assemble(assembler, london, window, resolutions)

    assert len(itinerary.activities) == 1
    assert itinerary.dropped[0].error == "ProviderTimeout"
    assert itinerary.dropped[0].reason == "Venue search timed out"


def test_flexible_entry_without_room_is_dropped(assembler, london, window) -> None:
    resolutions = [
        _resolution(london, _fixed("brunch", "09:00", 0, duration_minutes=720), ("Cafe", "Mayfair")),
        _resolution(london, _flexible("museum", 1, duration_minutes=120), ("Museum", "Bloomsbury")),
    ]
    itinerary = _assemble(assembler, london, window, resolutions)

    assert [item.entry.activity for item in itinerary.activities] == ["brunch"]
    assert itinerary.dropped[0].error == "PlacementConflict"


def test_everything_dropped_gives_empty_itinerary(assembler, london, window) -> None:
    itinerary = _assemble(
        assembler,
        london,
        window,
        [EntryResolution(entry=_flexible("coffee", 0))],
        query="coffee somewhere",
    )
    assert itinerary.is_empty
    assert itinerary.dropped[0].error == "NoResultsError"
    assert itinerary.title == "Trip: coffee somewhere in London"


def test_timeline_invariant_holds_for_many_flexible_entries(assembler, london, window) -> None:
    resolutions = [
        _resolution(london, _fixed("lunch", "13:00", 0), ("Scott's", "Mayfair")),
        _resolution(london, _flexible("coffee", 1, "morning"), ("Cafe", "Shoreditch")),
        _resolution(london, _flexible("museum", 2, "morning"), ("British Museum", "Bloomsbury")),
        _resolution(london, _flexible("shopping", 3), ("Liberty", "Soho")),
        _resolution(london, _flexible("drinks", 4, "evening"), ("Bar", "Canary Wharf")),
    ]
    itinerary = _assemble(assembler, london, window, resolutions)

    activities = itinerary.activities
    for previous, current in zip(activities, activities[1:]):
        assert current.start_time >= previous.end_time + timedelta(minutes=current.travel_minutes_from_previous)
    placed = {item.entry.activity for item in activities}
    dropped = {item.entry.activity for item in itinerary.dropped}
    assert placed | dropped == {"lunch", "coffee", "museum", "shopping", "drinks"}
    assert not placed & dropped


def test_nearest_neighbor_order_is_greedy_and_stable() -> None:
    positions = {"A": 5, "B": 2, "C": 9, "start": 0}

    def travel(origin, target) -> int:
        return abs(positions[origin] - positions[target])

    assert nearest_neighbor_order("start", ["A", "B", "C"], travel) == ["B", "A", "C"]

    positions.update({"X": 3, "Y": -3})
    assert nearest_neighbor_order("start", ["X", "Y"], travel) == ["X", "Y"]
    assert nearest_neighbor_order("start", [], travel) == []


def test_nearest_neighbor_order_follows_travel_matrix() -> None:
    matrix = {
        ("current", "A"): 10,
        ("current", "B"): 5,
        ("current", "C"): 20,
        ("B", "A"): 3,
        ("B", "C"): 8,
        ("A", "C"): 12,
    }

    def travel(origin, target) -> int:
        return matrix.get((origin, target), matrix.get((target, origin)))

    assert nearest_neighbor_order("current", ["A", "B", "C"], travel) == ["B", "A", "C"]
    assert nearest_neighbor_order("current", ["C", "A"], travel) == ["A", "C"]


def test_assign_gap_rules(window: DayWindow) -> None:
    lunch = _fixed("lunch", "12:00", 0)
    drinks = _fixed("drinks", "19:00", 2)
    fixed = [lunch, drinks]
    starts = [window.at("12:00"), window.at("19:00")]
    gaps = [
        (window.at("09:00"), window.at("12:00")),
        (window.at("13:00"), window.at("19:00")),
        (window.at("20:00"), window.at("22:00")),
    ]

    def gap_of(entry: ActivityEntry) -> int:
        return assign_gap(entry, fixed, starts, gaps, window)

    assert gap_of(_flexible("coffee", 1, "afterwards")) == 1
    assert gap_of(_flexible("coffee", 1, "before that")) == 0
    assert gap_of(_flexible("coffee", 1, "in the evening")) == 1
    assert gap_of(_flexible("coffee", 1, "morning")) == 0
    assert gap_of(_flexible("coffee", 3, "before drinks")) == 1
    assert gap_of(_flexible("coffee", 0, "after drinks")) == 2
    assert gap_of(_flexible("coffee", 3)) == 2
    assert gap_of(_flexible("coffee", 3, anchor_sequence=-1)) == 0
    assert gap_of(_flexible("coffee", 3, anchor_sequence=0)) == 1


def test_period_of() -> None:
    assert period_of("in the afternoon") == "afternoon"
    assert period_of("tonight") == "evening"
    assert period_of("afterwards") is None
    assert period_of(None) is None


def test_gap_fillers_cover_long_free_windows(london, window) -> None:
    parsed = ParsedRequest(fixed_time_entries=[_fixed("lunch", "12:00", 0), _fixed("drinks", "19:00", 2)])
    suggestions = suggest_gap_fillers(parsed, window, london.city)

    assert [item.activity for item in suggestions] == ["coffee", "museum"]
    assert all(item.suggested for item in suggestions)
    assert [item.anchor_sequence for item in suggestions] == [-1, 0]
    assert [item.sequence for item in suggestions] == [2, 3]

    parsed.flexible_time_entries.append(_flexible("shopping", 1, "afterwards"))
    assert [item.activity for item in suggest_gap_fillers(parsed, window, london.city)] == ["coffee"]
    assert suggest_gap_fillers(ParsedRequest(), window, london.city) == []


def test_gap_filler_suggests_lunch_over_midday(london, window) -> None:
    parsed = ParsedRequest(fixed_time_entries=[_fixed("dinner", "19:00", 0)])
    (suggestion,) = suggest_gap_fillers(parsed, window, london.city)
    assert suggestion.activity == "lunch"
    assert suggestion.search_type == "restaurant"


def test_entry_slot_rejects_illegal_transitions() -> None:
    slot = EntrySlot(index=0, resolution=EntryResolution(entry=_flexible("coffee", 0)))
    with pytest.raises(RuntimeError):
        slot.advance(EntryState.PLACED)
    slot.drop("NoResultsError", "nothing found")
    assert slot.state is EntryState.DROPPED
    with pytest.raises(RuntimeError):
        slot.advance(EntryState.LOCATION_RESOLVED)


def test_build_title_fallbacks() -> None:
    assert build_title([], "London") == "Day in London"
    assert build_title([], "London", "  coffee   then lunch ") == "Trip: coffee then lunch in London"
