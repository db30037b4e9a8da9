"""Turn a free-text request into fixed and flexible activity entries.

Two front ends share one normalisation step:

- ``RequestParser.parse_rules`` splits the text into clauses and extracts
  activity, clock time, relative descriptor, location, venue preference and
  duration with regular expressions;
- ``LLMParseService`` asks a chat model for the same raw entries through
  ``with_structured_output``.

``build_parsed_request`` then applies the classification rule: an explicit
clock time makes an entry fixed, anything else makes it flexible.
"""
from __future__ import annotations

import json
import logging
import re
from typing import List, Optional, Sequence, Tuple

from langchain_core.language_models.chat_models import BaseChatModel
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dayplanner.core.activities import detect_activity_type, match_activity, search_keywords
from dayplanner.core.errors import ParseError
from dayplanner.core.location import LocationResolver, is_nearby_reference
from dayplanner.core.prompts import parse_request_prompt
from dayplanner.core.schemas import ActivityEntry, CityConfig, EntryKind, ParsedRequest

logger = logging.getLogger(__name__)


class LLMEntry(BaseModel):
    """One activity as extracted from the request, before classification."""

    activity: str = Field(description="Short description of the activity")
    location: Optional[str] = Field(default=None, description="Place as written by the user, or 'nearby'")
    time: Optional[str] = Field(default=None, description="HH:MM clock time or the relative wording used")
    venue_preference: Optional[str] = Field(default=None, description="Style or quality qualifier, verbatim")
    duration_minutes: Optional[int] = Field(default=None, description="Stated duration in minutes")

    model_config = ConfigDict(extra="forbid")


class LLMParseResult(BaseModel):
    entries: List[LLMEntry] = Field(default_factory=list)
    start_location: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Clock times
# ---------------------------------------------------------------------------

_MERIDIEM = r"(a\.?m\.?|p\.?m\.?)"
_CLOCK_WITH_MINUTES = re.compile(r"\b(\d{1,2}):(\d{2})\s*" + _MERIDIEM + r"?(?![\w])", re.IGNORECASE)
_CLOCK_DOTTED = re.compile(r"\b(\d{1,2})\.(\d{2})\s*" + _MERIDIEM + r"(?![\w])", re.IGNORECASE)
_CLOCK_HOUR = re.compile(r"\b(\d{1,2})\s*" + _MERIDIEM + r"(?![\w])", re.IGNORECASE)
_CLOCK_NOON = re.compile(r"\b(noon|midday)\b", re.IGNORECASE)
_CLOCK_BARE = re.compile(
    r"\b(?:at|@|around|by)\s+(\d{1,2})\b(?!\s*(?:a\.?m|p\.?m|min|mins|minutes|hours?|hrs?|people|guests|%|:|\.\d))",
    re.IGNORECASE,
)
_EVENING_WORDS = re.compile(
    r"\b(?:dinner|supper|drinks?|cocktails?|bar|pub|wine|beers?|nightcap|evening|tonight|night|"
    r"show|theatre|theater|concert|gig|club|clubbing)\b",
    re.IGNORECASE,
)
_MORNING_WORDS = re.compile(r"\b(?:breakfast|brunch|morning|sunrise|jog|run)\b", re.IGNORECASE)


def _to_hhmm(hour: int, minute: int, meridiem: Optional[str]) -> Optional[str]:
    if meridiem:
        marker = meridiem.lower().replace(".", "")
        if not 1 <= hour <= 12:
            return None
        if marker == "pm" and hour != 12:
            hour += 12
        elif marker == "am" and hour == 12:
            hour = 0
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return f"{hour:02d}:{minute:02d}"


def _bare_hour(hour: int, context: str) -> int:
    """24-hour value for an hour given without am/pm, judged by the activity words."""

    if not 1 <= hour <= 11:
        return hour
    if _EVENING_WORDS.search(context):
        return hour + 12
    if _MORNING_WORDS.search(context):
        return hour
    # "at 7" in a day plan means the evening; "at 9" the morning
    return hour + 12 if hour <= 7 else hour


def find_clock_time(text: str, activity: Optional[str] = None) -> Optional[Tuple[str, int, int]]:
    """Return ``(HH:MM, start, end)`` for the first explicit clock time in ``text``.

    Bare hours ("at 8") are read as evening when ``text`` or ``activity`` names an
    evening activity such as dinner or drinks, and as morning for breakfast-like ones.
    """

    context = " ".join(filter(None, [text, activity]))

    found: List[Tuple[int, int, str]] = []
    for pattern in (_CLOCK_WITH_MINUTES, _CLOCK_DOTTED):
        for match in pattern.finditer(text):
            value = _to_hhmm(int(match.group(1)), int(match.group(2)), match.group(3))
            if value:
                found.append((match.start(), match.end(), value))
    for match in _CLOCK_HOUR.finditer(text):
        value = _to_hhmm(int(match.group(1)), 0, match.group(2))
        if value:
            found.append((match.start(), match.end(), value))
    for match in _CLOCK_NOON.finditer(text):
        found.append((match.start(), match.end(), "12:00"))
    for match in _CLOCK_BARE.finditer(text):
        value = _to_hhmm(_bare_hour(int(match.group(1)), context), 0, None)
        if value:
            found.append((match.start(), match.end(), value))

    if not found:
        return None
    start, end, value = min(found, key=lambda item: (item[0], -item[1]))
    return value, start, end


def parse_clock_time(text: Optional[str], activity: Optional[str] = None) -> Optional[str]:
    """Normalise an explicit clock time to ``HH:MM``; ``None`` for relative wording."""

    if not text:
        return None
    stripped = text.strip()
    if re.fullmatch(r"\d{1,2}", stripped):
        return _to_hhmm(_bare_hour(int(stripped), activity or ""), 0, None)
    found = find_clock_time(stripped, activity)
    return found[0] if found else None


# ---------------------------------------------------------------------------
# Clause-level extraction
# ---------------------------------------------------------------------------

_SENTENCE_SPLIT = re.compile(r"[;!?\n]+|\.(?=\s|$)")
_CONNECTOR = re.compile(
    r"(\s*,?\s*\b(?:and then|and afterwards|and later|then|after that|afterwards|followed by|later on|later|"
    r"before that|and)\b\s*|\s*,\s*)",
    re.IGNORECASE,
)
AFTER_CONNECTORS = ("then", "after that", "afterwards", "followed by", "later")
_RELATIVE = re.compile(
    r"\b(before (?:that|then|it|\w+)|before|after (?:that|this|it|\w+)|afterwards|afterward|later on|later|"
    r"(?:in the |this )?(?:morning|afternoon|evening)|tonight|at night|lunchtime)\b",
    re.IGNORECASE,
)
_PLACE_AFTER_PREPOSITION = re.compile(
    r"\b(?:in|at|near|around|to|from|by|on)\s+((?:[A-Z][\w'’&.-]*|V&A)(?:\s+(?:[A-Z][\w'’&.-]*|of|the|and|on))*)"
)
_NOT_PLACES = {"noon", "midday", "midnight", "tonight", "i", "am", "pm"}
_DURATION = re.compile(
    r"\bfor\s+(?:(half an hour)|(an?|one|two|three|four|\d+(?:\.\d+)?)\s*(hours?|hrs?|h|minutes?|mins?)\b)",
    re.IGNORECASE,
)
_NUMBER_WORDS = {"a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4}
_START_LOCATION = re.compile(
    r"\b(?:starting|start|staying|based|leaving|setting off|begin(?:ning)?)\s+(?:from|at|in|near)\s+([^,.;!?]+)",
    re.IGNORECASE,
)

STYLE_WORDS = frozenset(
    {
        "nice", "quiet", "cosy", "cozy", "cheap", "affordable", "fancy", "upscale", "luxury", "trendy", "hip",
        "rooftop", "authentic", "local", "romantic", "casual", "fine", "lively", "small", "independent",
        "family-friendly", "vegan", "vegetarian", "italian", "french", "japanese", "indian", "chinese", "thai",
        "mexican", "traditional", "historic", "modern", "chill", "relaxed", "elegant", "busy", "peaceful",
        "calm", "hidden", "famous", "popular", "good", "great", "best", "classic", "stylish", "artsy",
        "outdoor", "indoor", "non-crowded", "uncrowded", "kid-friendly", "dog-friendly", "craft", "speakeasy",
    }
)
_VAGUE_WORDS = frozenset({"nice", "good", "great", "best"})
VENUE_NOUNS = (
    "coffee shop", "wine bar", "cocktail bar", "tea room", "cafe", "café", "restaurant", "bar", "pub",
    "bistro", "brasserie", "diner", "bakery", "lounge", "spot", "place", "gallery", "museum", "park",
    "market", "coffee", "drinks", "lunch", "dinner", "brunch", "breakfast",
)
_PREFERENCE = re.compile(
    r"\b((?:[\w-]+\s+){1,3}?)(" + "|".join(re.escape(noun) for noun in VENUE_NOUNS) + r")\b",
    re.IGNORECASE,
)
_SOMEWHERE = re.compile(r"\b(?:somewhere|something|someplace|anywhere)\s+([\w-]+(?:\s+and\s+[\w-]+)?)", re.IGNORECASE)
_WITH_FEATURE = re.compile(r"\bwith\s+(a view|views|outdoor seating|live music|a terrace|a garden)\b", re.IGNORECASE)


def split_clauses(text: str) -> List[Tuple[str, Optional[str]]]:
    """Split into ``(clause, connector)`` pairs; the connector precedes the clause."""

    clauses: List[Tuple[str, Optional[str]]] = []
    for sentence in _SENTENCE_SPLIT.split(text or ""):
        parts = _CONNECTOR.split(sentence)
        connector: Optional[str] = None
        for index, part in enumerate(parts):
            if index % 2 == 1:
                word = part.strip(" ,").lower()
                if word and word != "and":
                    connector = word
                continue
            clause = part.strip(" ,")
            if clause:
                clauses.append((clause, connector))
                connector = None
    return clauses


def extract_duration(text: str) -> Optional[int]:
    found = _DURATION.search(text)
    if not found:
        return None
    if found.group(1):
        return 30
    amount_text = found.group(2).lower()
    amount = _NUMBER_WORDS.get(amount_text)
    if amount is None:
        amount = float(amount_text)
    unit = found.group(3).lower()
    minutes = amount * 60 if unit.startswith("h") else amount
    return int(minutes) if minutes > 0 else None


def extract_venue_preference(text: str) -> Optional[str]:
    """Style words attached to a venue noun, copied verbatim."""

    for match in _PREFERENCE.finditer(text):
        words = match.group(1).split()
        kept: List[str] = []
        for word in reversed(words):
            if word.lower().strip(",") in STYLE_WORDS:
                kept.insert(0, word)
            else:
                break
        if kept:
            return " ".join([*kept, match.group(2)])
    somewhere = _SOMEWHERE.search(text)
    if somewhere and any(word.lower() in STYLE_WORDS for word in somewhere.group(1).split()):
        return somewhere.group(0)
    feature = _WITH_FEATURE.search(text)
    if feature:
        return feature.group(0)
    return None


def extract_requirements(preference: Optional[str]) -> Tuple[str, ...]:
    """Style words in a preference, used as ranking preferences."""

    if not preference:
        return ()
    words = [word.lower().strip(",.") for word in re.split(r"\s+", preference)]
    found = [word for word in words if word in STYLE_WORDS and word not in _VAGUE_WORDS]
    feature = _WITH_FEATURE.search(preference)
    if feature:
        found.append(feature.group(1).lower())
    return tuple(dict.fromkeys(found))


def _relative_descriptor(clause: str, connector: Optional[str]) -> Optional[str]:
    found = _RELATIVE.search(clause)
    if found:
        return found.group(1).lower()
    if connector == "before that":
        return "before that"
    if connector and any(word in connector for word in AFTER_CONNECTORS):
        return "afterwards"
    return None


class RequestParser:
    """Parses requests for one city, optionally through an LLM."""

    def __init__(
        self,
        city: CityConfig,
        resolver: LocationResolver,
        llm_service: Optional["LLMParseService"] = None,
    ) -> None:
        self.city = city
        self.resolver = resolver
        self.llm_service = llm_service

    async def parse(self, text: str, history: Sequence[str] = ()) -> ParsedRequest:
        """Parse ``text``; raises ``ParseError`` when the LLM path fails."""

        if not text or not text.strip():
            return ParsedRequest()
        if self.llm_service is None:
            return self.parse_rules(text)
        result = await self.llm_service.extract(text, self.city, self.resolver, history=history)
        return build_parsed_request(result.entries, self.city, start_location=result.start_location)

    def parse_rules(self, text: str) -> ParsedRequest:
        """Deterministic keyword and pattern based parse."""

        raw_entries: List[LLMEntry] = []
        for clause, connector in split_clauses(text):
            entry = self._parse_clause(clause, connector)
            if entry is not None:
                raw_entries.append(entry)
            elif raw_entries:
                raw_entries[-1] = self._merge_into(raw_entries[-1], clause)

        start = _START_LOCATION.search(text)
        start_location = start.group(1).strip() if start else None
        parsed = build_parsed_request(raw_entries, self.city, start_location=start_location)
        logger.info(
            f"Rule parser extracted {len(parsed.fixed_time_entries)} fixed and "
            f"{len(parsed.flexible_time_entries)} flexible entries"
        )
        return parsed

    def _parse_clause(self, clause: str, connector: Optional[str]) -> Optional[LLMEntry]:
        found = match_activity(clause)
        if found is None:
            return None
        activity, _, _ = found

        clock = find_clock_time(clause)
        time = clock[0] if clock else _relative_descriptor(clause, connector)
        location, named_venue = self._extract_location(clause)
        preference = extract_venue_preference(clause) or named_venue

        return LLMEntry(
            activity=activity,
            location=location,
            time=time,
            venue_preference=preference,
            duration_minutes=extract_duration(clause),
        )

    def _extract_location(self, clause: str) -> Tuple[Optional[str], Optional[str]]:
        """Return ``(location mention, named venue)`` for a clause."""

        if is_nearby_reference(clause):
            return "nearby", None

        captures = []
        for match in _PLACE_AFTER_PREPOSITION.finditer(clause):
            phrase = re.sub(r"\s+(?:of|the|and|on)$", "", match.group(1).strip(" .")).strip()
            if phrase and phrase.lower() not in _NOT_PLACES:
                captures.append(phrase)
        for phrase in captures:
            if self.resolver.resolve(phrase) is not None:
                unresolved = [other for other in captures if other != phrase]
                return phrase, unresolved[0] if unresolved else None

        mentions = self.resolver.find_mentions(clause)
        if mentions:
            return mentions[0][0], captures[0] if captures else None
        if captures:
            return captures[0], None
        return None, None

    def _merge_into(self, previous: LLMEntry, clause: str) -> LLMEntry:
        """Attach a time or place from an activity-less clause to the previous entry."""

        updates = {}
        if previous.time is None or parse_clock_time(previous.time) is None:
            clock = find_clock_time(clause, previous.activity)
            if clock:
                updates["time"] = clock[0]
        if previous.location is None:
            location, _ = self._extract_location(clause)
            if location:
                updates["location"] = location
        if previous.venue_preference is None:
            preference = extract_venue_preference(clause)
            if preference:
                updates["venue_preference"] = preference
        return previous.model_copy(update=updates) if updates else previous


def build_parsed_request(
    raw_entries: Sequence[LLMEntry],
    city: CityConfig,
    *,
    start_location: Optional[str] = None,
) -> ParsedRequest:
    """Classify raw entries: a clock time makes an entry fixed."""

    fixed: List[ActivityEntry] = []
    flexible: List[ActivityEntry] = []
    sequence = 0
    for raw in raw_entries:
        activity = (raw.activity or "").strip()
        if not activity:
            continue
        preference = (raw.venue_preference or "").strip() or None
        clock = parse_clock_time(raw.time, activity)
        search_type = detect_activity_type(" ".join(filter(None, [activity, preference])))
        duration = raw.duration_minutes if raw.duration_minutes and 0 < raw.duration_minutes <= 720 else None

        entry = ActivityEntry(
            activity=activity,
            location=(raw.location or "").strip() or None,
            time=clock or ((raw.time or "").strip() or None),
            venue_preference=preference,
            kind=EntryKind.FIXED if clock else EntryKind.FLEXIBLE,
            sequence=sequence,
            duration_minutes=duration,
            search_type=search_type,
            keywords=search_keywords(search_type, city),
            requirements=extract_requirements(preference),
        )
        sequence += 1
        (fixed if entry.is_fixed else flexible).append(entry)

    fixed.sort(key=lambda entry: (entry.time, entry.sequence))
    return ParsedRequest(
        fixed_time_entries=fixed,
        flexible_time_entries=flexible,
        start_location=(start_location or "").strip() or None,
    )


# ---------------------------------------------------------------------------
# LLM front end
# ---------------------------------------------------------------------------

_CODE_BLOCK = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


def extract_json_payload(content: str) -> LLMParseResult:
    """Validate the JSON object in a raw model reply, fenced or bare."""

    block = _CODE_BLOCK.search(content)
    if block:
        payload = block.group(1)
    else:
        start, end = content.find("{"), content.rfind("}")
        if start == -1 or end <= start:
            raise ParseError("Model reply did not contain a JSON object")
        payload = content[start : end + 1]
    try:
        return LLMParseResult.model_validate(json.loads(payload))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ParseError(f"Model reply was not a valid parse result: {exc}") from exc


class LLMParseService:
    """Extracts raw entries with a chat model."""

    def __init__(self, llm: BaseChatModel) -> None:
        self.llm = llm
        self.structured_llm = llm.with_structured_output(LLMParseResult)

    async def extract(
        self,
        text: str,
        city: CityConfig,
        resolver: LocationResolver,
        *,
        history: Sequence[str] = (),
    ) -> LLMParseResult:
        prompt = parse_request_prompt.format(
            city_name=city.name,
            areas=", ".join(resolver.knowledge_base.names()),
            history="\n".join(f"- {line}" for line in history) or "None",
            query=text.strip(),
        )
        try:
            result = await self.structured_llm.ainvoke(prompt)
        except Exception as exc:
            logger.warning(f"Structured parse failed, retrying with raw output: {exc}")
            return await self._extract_raw(prompt)

        if isinstance(result, LLMParseResult):
            return result
        if isinstance(result, dict):
            try:
                return LLMParseResult.model_validate(result)
            except ValidationError as exc:
                raise ParseError(f"Parse result failed validation: {exc}") from exc
        raise ParseError(f"Unexpected parse result type: {type(result).__name__}")

    async def _extract_raw(self, prompt: str) -> LLMParseResult:
        try:
            message = await self.llm.ainvoke(prompt)
        except Exception as exc:
            raise ParseError(f"Parse provider unavailable: {exc}") from exc
        content = getattr(message, "content", message)
        if not isinstance(content, str):
            content = json.dumps(content) if isinstance(content, (dict, list)) else str(content)
        return extract_json_payload(content)
