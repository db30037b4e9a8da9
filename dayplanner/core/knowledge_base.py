"""Read-only area knowledge and city registry.

Knowledge bases are built once per city and cached for the lifetime of the
process. Nothing hands out mutable views: areas live in a ``MappingProxyType``
keyed by lowercase name and the tuned travel table is frozen the same way.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from dayplanner.core.errors import UnknownCityError
from dayplanner.core.schemas import Area, CityConfig, TransitDetails, TransportMode
from dayplanner.data import CITY_MODULES, SLUG_ALIASES

logger = logging.getLogger(__name__)

Minutes3 = Tuple[int, int, int]
# (walking, transit, driving[, recommended mode])
TravelRow = Union[Minutes3, Tuple[int, int, int, str]]
PairKey = Tuple[str, str]


@dataclass(frozen=True, slots=True)
class TunedTravel:
    """Empirically tuned minutes between two areas."""

    walking_minutes: int
    transit_minutes: int
    driving_minutes: int
    transit_details: Optional[TransitDetails] = None
    recommended_mode: Optional[TransportMode] = None


@dataclass(frozen=True, slots=True)
class AreaKnowledgeBase:
    """Immutable registry of areas plus tuned pairwise travel times."""

    city_slug: str
    areas: Mapping[str, Area]
    travel_table: Mapping[PairKey, TunedTravel]

    @classmethod
    def from_records(
        cls,
        city_slug: str,
        areas: Iterable[Area],
        travel_table: Optional[Mapping[PairKey, TravelRow]] = None,
        transit_lines: Optional[Mapping[PairKey, Tuple[Tuple[str, ...], int]]] = None,
    ) -> "AreaKnowledgeBase":
        """Build a knowledge base, rejecting duplicate names.

        Neighbor references to unknown areas are kept; the travel estimator
        treats them as non-neighbors.
        """

        by_key = {}
        for area in areas:
            if area.key in by_key:
                raise ValueError(f"Duplicate area name '{area.name}' in {city_slug}")
            by_key[area.key] = area

        for area in by_key.values():
            broken = [name for name in area.neighbors if name.lower() not in by_key]
            if broken:
                logger.debug(f"{city_slug}: {area.name} lists unknown neighbors {broken}")

        lines = transit_lines or {}
        table = {}
        for (origin, destination), row in (travel_table or {}).items():
            walk, transit, drive, *mode = row
            pair = (origin.lower(), destination.lower())
            detail = lines.get((origin, destination))
            table[pair] = TunedTravel(
                walking_minutes=walk,
                transit_minutes=transit,
                driving_minutes=drive,
                transit_details=TransitDetails(lines=detail[0], changes=detail[1]) if detail else None,
                recommended_mode=TransportMode(mode[0]) if mode else None,
            )

        return cls(
            city_slug=city_slug,
            areas=MappingProxyType(by_key),
            travel_table=MappingProxyType(table),
        )

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self.areas

    def __iter__(self) -> Iterator[Area]:
        return iter(self.areas.values())

    def __len__(self) -> int:
        return len(self.areas)

    def get(self, name: Optional[str]) -> Optional[Area]:
        if not name:
            return None
        return self.areas.get(name.strip().lower())

    def names(self) -> List[str]:
        return [area.name for area in self.areas.values()]

    def tuned(self, origin: str, destination: str) -> Optional[TunedTravel]:
        """Return the tuned entry for a pair, trying both directions."""

        origin, destination = origin.lower(), destination.lower()
        found = self.travel_table.get((origin, destination))
        if found is None:
            found = self.travel_table.get((destination, origin))
        return found

    def are_neighbors(self, first: str, second: str) -> bool:
        """True when either area lists the other as a neighbor."""

        a, b = self.get(first), self.get(second)
        if a is None or b is None:
            return False
        return b.key in {name.lower() for name in a.neighbors} or a.key in {
            name.lower() for name in b.neighbors
        }


def normalize_city_slug(slug: str) -> str:
    cleaned = " ".join((slug or "").strip().lower().replace("_", " ").split())
    return SLUG_ALIASES.get(cleaned, cleaned.replace(" ", "-"))


def available_cities() -> List[CityConfig]:
    return [module.CITY for module in CITY_MODULES.values()]


def get_city_config(slug: str) -> CityConfig:
    """Return the configuration for ``slug``; matching is case-insensitive."""

    module = CITY_MODULES.get(normalize_city_slug(slug))
    if module is None:
        raise UnknownCityError(slug)
    return module.CITY


@lru_cache(maxsize=None)
def _load(slug: str) -> AreaKnowledgeBase:
    module = CITY_MODULES[slug]
    knowledge_base = AreaKnowledgeBase.from_records(
        slug,
        module.AREAS,
        travel_table=module.TRAVEL_TABLE,
        transit_lines=module.TRANSIT_LINES,
    )
    logger.info(f"Loaded {len(knowledge_base)} areas for {slug}")
    return knowledge_base


def load_knowledge_base(slug: str) -> AreaKnowledgeBase:
    """Return the process-wide knowledge base for a city."""

    return _load(get_city_config(slug).slug)
