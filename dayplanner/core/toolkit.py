"""Per-city bundle of the pure planning components."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from dayplanner.core.knowledge_base import AreaKnowledgeBase, get_city_config, load_knowledge_base
from dayplanner.core.location import LocationResolver
from dayplanner.core.ranking import AreaSuitabilityRanker
from dayplanner.core.schemas import CityConfig
from dayplanner.core.travel import TravelEstimator


@dataclass(frozen=True, slots=True)
class CityToolkit:
    city: CityConfig
    knowledge_base: AreaKnowledgeBase
    resolver: LocationResolver
    estimator: TravelEstimator
    ranker: AreaSuitabilityRanker

    @classmethod
    def build(cls, city: CityConfig, knowledge_base: AreaKnowledgeBase) -> "CityToolkit":
        estimator = TravelEstimator(knowledge_base, transport_modes=city.transport_modes)
        return cls(
            city=city,
            knowledge_base=knowledge_base,
            resolver=LocationResolver(knowledge_base),
            estimator=estimator,
            ranker=AreaSuitabilityRanker(knowledge_base, estimator),
        )


@lru_cache(maxsize=None)
def _toolkit(slug: str) -> CityToolkit:
    return CityToolkit.build(get_city_config(slug), load_knowledge_base(slug))


def get_city_toolkit(slug: str) -> CityToolkit:
    """Shared toolkit for a city; raises ``UnknownCityError`` for unknown slugs."""

    return _toolkit(get_city_config(slug).slug)
