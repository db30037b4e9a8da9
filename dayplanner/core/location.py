"""Resolve free-text place mentions to knowledge-base areas.

Matching order for ``resolve``:

1. exact, case-insensitive area name;
2. alternative name or known misspelling;
3. whole-word containment of a known name, alternative name or landmark,
   preferring the longest phrase;
4. fuzzy match (``rapidfuzz`` WRatio) that clears ``score_cutoff``.

Anything below the cutoff resolves to ``None`` and callers fall back to the
city default location. Resolution is pure; no network calls are made.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Tuple

from rapidfuzz import fuzz, process

from dayplanner.core.knowledge_base import AreaKnowledgeBase
from dayplanner.core.schemas import Area, LatLng
from dayplanner.core.travel import haversine_km

logger = logging.getLogger(__name__)

MIN_CONFIDENCE = 85.0
NEARBY_MARKERS = (
    "nearby",
    "near by",
    "near there",
    "near here",
    "close by",
    "around there",
    "same area",
)

_FILLER = re.compile(r"^(?:in|at|near|around|to|from|the)\s+|\s+(?:area|neighbourhood|neighborhood)$")
_PUNCT = re.compile(r"[^\w\s&/-]")


def normalize_place(text: str) -> str:
    """Lowercase, drop apostrophes and punctuation, trim filler words."""

    cleaned = _PUNCT.sub("", (text or "").lower().replace("'", "").replace("’", ""))
    cleaned = " ".join(cleaned.split())
    previous = None
    while previous != cleaned:
        previous = cleaned
        cleaned = _FILLER.sub("", cleaned).strip()
    return cleaned


def is_nearby_reference(mention: Optional[str]) -> bool:
    text = (mention or "").lower()
    return any(marker in text for marker in NEARBY_MARKERS)


class LocationResolver:
    """Ranked location matching against one knowledge base."""

    def __init__(self, knowledge_base: AreaKnowledgeBase, *, score_cutoff: float = MIN_CONFIDENCE) -> None:
        self.knowledge_base = knowledge_base
        self.score_cutoff = score_cutoff

        self._exact: Dict[str, Area] = {}
        self._aliases: Dict[str, Area] = {}
        self._phrases: Dict[str, Area] = {}
        for area in knowledge_base:
            name = normalize_place(area.name)
            self._exact.setdefault(name, area)
            self._phrases.setdefault(name, area)
            for alias in (*area.alternative_names, *area.common_misspellings):
                self._aliases.setdefault(normalize_place(alias), area)
            for phrase in (*area.alternative_names, *area.landmarks):
                self._phrases.setdefault(normalize_place(phrase), area)
        # longest phrases first so "south kensington" wins over "kensington"
        self._ordered_phrases: List[str] = sorted(self._phrases, key=len, reverse=True)
        self._patterns = {
            phrase: re.compile(rf"(?<![\w]){re.escape(phrase)}(?![\w])") for phrase in self._ordered_phrases
        }

    def resolve_with_score(self, raw_mention: Optional[str]) -> Optional[Tuple[Area, float]]:
        """Return the matched area with a 0-100 confidence, or ``None``."""

        mention = normalize_place(raw_mention or "")
        if not mention:
            return None

        if mention in self._exact:
            return self._exact[mention], 100.0
        if mention in self._aliases:
            return self._aliases[mention], 95.0

        for phrase in self._ordered_phrases:
            if self._patterns[phrase].search(mention):
                return self._phrases[phrase], 90.0

        match = process.extractOne(
            mention,
            list(self._exact) + list(self._aliases) + self._ordered_phrases,
            scorer=fuzz.WRatio,
            score_cutoff=self.score_cutoff,
        )
        if match is None:
            logger.debug(f"No area match for '{raw_mention}'")
            return None
        choice, score, _ = match
        area = self._exact.get(choice) or self._aliases.get(choice) or self._phrases[choice]
        logger.debug(f"Fuzzy matched '{raw_mention}' to {area.name} ({score:.0f})")
        return area, float(score)

    def resolve(self, raw_mention: Optional[str]) -> Optional[Area]:
        found = self.resolve_with_score(raw_mention)
        return found[0] if found else None

    def find_mentions(self, text: str) -> List[Tuple[str, Area]]:
        """Return ``(matched text, area)`` for every area phrase found in ``text``.

        Results follow their position in the text; each area appears once and
        overlapping shorter phrases are skipped.
        """

        haystack = normalize_place(text)
        spans: List[Tuple[int, int, str]] = []
        for phrase in self._ordered_phrases:
            for found in self._patterns[phrase].finditer(haystack):
                start, end = found.span()
                if any(start < other_end and end > other_start for other_start, other_end, _ in spans):
                    continue
                spans.append((start, end, phrase))
        for alias, area in self._aliases.items():
            if alias in self._phrases:
                continue
            pattern = re.compile(rf"(?<![\w]){re.escape(alias)}(?![\w])")
            for found in pattern.finditer(haystack):
                start, end = found.span()
                if not any(start < other_end and end > other_start for other_start, other_end, _ in spans):
                    spans.append((start, end, alias))

        mentions: List[Tuple[str, Area]] = []
        seen = set()
        for start, end, phrase in sorted(spans):
            area = self._phrases.get(phrase) or self._aliases[phrase]
            if area.key in seen:
                continue
            seen.add(area.key)
            mentions.append((haystack[start:end], area))
        return mentions

    def extract_area_references(self, text: str) -> List[Area]:
        """Every known area mentioned in ``text``, in order of mention."""

        return [area for _, area in self.find_mentions(text)]

    def find_nearest_area(self, coordinates: Optional[LatLng], *, max_km: float = 5.0) -> Optional[Area]:
        """Closest area centre within ``max_km`` of ``coordinates``."""

        if coordinates is None:
            return None
        best: Optional[Tuple[float, Area]] = None
        for area in self.knowledge_base:
            distance = haversine_km(coordinates, area.coordinates)
            if best is None or distance < best[0]:
                best = (distance, area)
        if best is None or best[0] > max_km:
            return None
        return best[1]

    def area_for_venue(self, address: str, coordinates: Optional[LatLng]) -> Optional[Area]:
        """Area named in a venue address, else the nearest area centre."""

        mentioned = self.extract_area_references(address or "")
        if mentioned:
            return mentioned[0]
        return self.find_nearest_area(coordinates)
