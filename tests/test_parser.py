"""Rule-based and LLM-backed request parsing."""
from __future__ import annotations

from typing import Any, List, Optional

import pytest
from langchain_core.messages import AIMessage

from dayplanner.core.errors import ParseError
from dayplanner.core.parser import (
    LLMEntry,
    LLMParseResult,
    LLMParseService,
    RequestParser,
    build_parsed_request,
    extract_duration,
    extract_json_payload,
    extract_venue_preference,
    find_clock_time,
    parse_clock_time,
    split_clauses,
)
from dayplanner.core.schemas import EntryKind

SCENARIO = "Lunch in Mayfair at 12, then a quiet coffee nearby, and drinks in Chelsea at 7pm"


class StructuredResponder:
    def __init__(self, result: Any = None, error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.prompts: List[str] = []

    async def ainvoke(self, prompt: str) -> Any:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.result


class StubLLM:
    """Minimal chat model double exposing the two calls the parser makes."""

    def __init__(self, structured: StructuredResponder, raw: Any = None, raw_error: Optional[Exception] = None):
        self.structured = structured
        self.raw = raw
        self.raw_error = raw_error

    def with_structured_output(self, schema: Any) -> StructuredResponder:
        assert schema is LLMParseResult
        return self.structured

    async def ainvoke(self, prompt: str) -> Any:
        if self.raw_error is not None:
            raise self.raw_error
        return self.raw


@pytest.fixture
def parser(london) -> RequestParser:
    return RequestParser(london.city, london.resolver)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("dinner at 7pm", "19:00"),
        ("coffee at 7:30am", "07:30"),
        ("lunch at noon", "12:00"),
        ("drinks at 7", "19:00"),
        ("gym at 9", "09:00"),
        ("Dinner at 8 in Soho", "20:00"),
        ("drinks around 9", "21:00"),
        ("breakfast at 7", "07:00"),
        ("meeting at 8", "08:00"),
        ("lunch at 1", "13:00"),
        ("museum 2.30pm", "14:30"),
        ("table for 4 people", None),
        ("coffee afterwards", None),
    ],
)
def test_find_clock_time(text: str, expected: Optional[str]) -> None:
    found = find_clock_time(text)
    assert (found[0] if found else None) == expected


def test_bare_hours_follow_the_activity(parser) -> None:
    parsed = parser.parse_rules("Dinner at 8 in Soho")
    (dinner,) = parsed.fixed_time_entries
    assert (dinner.activity, dinner.time) == ("dinner", "20:00")

    assert parse_clock_time("8", "drinks") == "20:00"
    assert parse_clock_time("8") == "08:00"
    assert find_clock_time("at 9", "dinner")[0] == "21:00"


def test_parse_clock_time_rejects_relative_wording() -> None:
    assert parse_clock_time("19:00") == "19:00"
    assert parse_clock_time("7pm") == "19:00"
    assert parse_clock_time("afterwards") is None
    assert parse_clock_time(None) is None


def test_split_clauses_records_connectors() -> None:
    clauses = split_clauses("Coffee in Soho, then lunch. Drinks before that")
    assert clauses[0] == ("Coffee in Soho", None)
    assert clauses[1] == ("lunch", "then")
    assert clauses[2][0] == "Drinks"


def test_duration_and_preference_extraction() -> None:
    assert extract_duration("museum for 2 hours") == 120
    assert extract_duration("coffee for half an hour") == 30
    assert extract_duration("coffee for 45 mins") == 45
    assert extract_duration("coffee") is None

    assert extract_venue_preference("a quiet coffee nearby") == "quiet coffee"
    assert extract_venue_preference("drinks at a rooftop bar") == "rooftop bar"
    assert extract_venue_preference("lunch") is None


def test_scenario_parse(parser: RequestParser) -> None:
    parsed = parser.parse_rules(SCENARIO)

    assert [entry.activity for entry in parsed.fixed_time_entries] == ["lunch", "drinks"]
    lunch, drinks = parsed.fixed_time_entries
    assert (lunch.time, lunch.location, lunch.sequence) == ("12:00", "Mayfair", 0)
    assert (drinks.time, drinks.location, drinks.sequence) == ("19:00", "Chelsea", 2)

    (coffee,) = parsed.flexible_time_entries
    assert coffee.kind is EntryKind.FLEXIBLE
    assert coffee.time == "afterwards"
    assert coffee.location == "nearby"
    assert coffee.venue_preference == "quiet coffee"
    assert coffee.requirements == ("quiet",)
    assert coffee.search_type == "cafe"
    assert coffee.sequence == 1


def test_explicit_time_makes_entry_fixed(parser: RequestParser) -> None:
    parsed = parser.parse_rules("Dinner in Soho at 7pm")
    assert parsed.fixed_time_entries[0].time == "19:00"
    assert not parsed.flexible_time_entries


def test_relative_time_keeps_entry_flexible(parser: RequestParser) -> None:
    parsed = parser.parse_rules("Museum in the afternoon")
    (museum,) = parsed.flexible_time_entries
    assert museum.time == "in the afternoon"
    assert not parsed.fixed_time_entries


def test_start_location(parser: RequestParser) -> None:
    parsed = parser.parse_rules("Starting from Soho, coffee then lunch at 1pm")
    assert parsed.start_location == "Soho"
    assert [entry.activity for entry in parsed.entries] == ["coffee", "lunch"]
    assert parsed.fixed_time_entries[0].time == "13:00"


async def test_empty_and_unrecognised_input(parser: RequestParser) -> None:
    assert (await parser.parse("")).is_empty
    assert (await parser.parse("   ")).is_empty
    assert (await parser.parse("hello there")).is_empty


def test_build_parsed_request_classifies_by_clock(london) -> None:
    parsed = build_parsed_request(
        [
            LLMEntry(activity="drinks", time="7pm"),
            LLMEntry(activity="lunch", time="12:00"),
            LLMEntry(activity="coffee", time="after lunch"),
            LLMEntry(activity="   "),
        ],
        london.city,
    )
    assert [entry.time for entry in parsed.fixed_time_entries] == ["12:00", "19:00"]
    assert parsed.flexible_time_entries[0].time == "after lunch"
    assert [entry.sequence for entry in parsed.entries] == [0, 1, 2]


async def test_llm_structured_path(london) -> None:
    structured = StructuredResponder(
        LLMParseResult(
            entries=[
                LLMEntry(activity="lunch", location="Mayfair", time="12:00"),
                LLMEntry(activity="coffee", location="nearby", time="afterwards", venue_preference="quiet coffee"),
            ]
        )
    )
    parser = RequestParser(london.city, london.resolver, LLMParseService(StubLLM(structured)))

    parsed = await parser.parse(SCENARIO, history=["Plan my Saturday"])

    assert parsed.fixed_time_entries[0].activity == "lunch"
    assert parsed.flexible_time_entries[0].requirements == ("quiet",)
    assert "Mayfair" in structured.prompts[0]
    assert "- Plan my Saturday" in structured.prompts[0]


async def test_llm_raw_fallback_reads_fenced_json(london) -> None:
    raw = AIMessage(content='```json\n{"entries": [{"activity": "drinks", "time": "19:00"}]}\n```')
    llm = StubLLM(StructuredResponder(error=ValueError("schema not supported")), raw=raw)
    parser = RequestParser(london.city, london.resolver, LLMParseService(llm))

    parsed = await parser.parse("drinks at 7pm")
    assert parsed.fixed_time_entries[0].time == "19:00"


async def test_llm_failure_raises_parse_error(london) -> None:
    llm = StubLLM(StructuredResponder(error=ValueError("boom")), raw_error=ConnectionError("offline"))
    parser = RequestParser(london.city, london.resolver, LLMParseService(llm))

    with pytest.raises(ParseError):
        await parser.parse("drinks at 7pm")


def test_extract_json_payload_rejects_garbage() -> None:
    with pytest.raises(ParseError):
        extract_json_payload("no json here")
    with pytest.raises(ParseError):
        extract_json_payload('{"entries": "nope"}')
    assert extract_json_payload('Sure! {"entries": []}').entries == []
